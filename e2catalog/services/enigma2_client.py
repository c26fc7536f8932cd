"""
Enigma2 Receiver Client

Thin async wrapper over the receiver's OpenWebif endpoints used by the
directories and the picon pipeline.
"""
import logging
from urllib.parse import quote

import httpx


logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched beyond quote()'s defaults
_REFERENCE_SAFE_CHARS = "!*'()"


class UpstreamError(RuntimeError):
    """Raised when the receiver cannot deliver a lineup listing"""
    pass


class Enigma2Client:
    """
    Client for a single Enigma2 receiver.

    Lineup requests raise UpstreamError on any transport or HTTP status
    failure. Picon requests return None for non-success statuses and leave
    transport errors (httpx.HTTPError) to the caller.
    """

    def __init__(
        self,
        host: str,
        port: int = 80,
        *,
        lineup_timeout: float = 5.0,
        picon_timeout: float = 3.0,
        http_client: httpx.AsyncClient | None = None
    ):
        self.host = host
        self.port = port
        self.lineup_timeout = lineup_timeout
        self.picon_timeout = picon_timeout
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def services_url(self, service_reference: str | None = None) -> str:
        """URL of the full lineup, or of one bouquet when a reference is given"""
        url = f"{self.base_url}/web/getservices"
        if service_reference:
            url = f"{url}?sRef={quote(service_reference, safe=_REFERENCE_SAFE_CHARS)}"
        return url

    def picon_url(self, filename: str) -> str:
        return f"http://{self.host}/picon/{filename}.png"

    async def get_services(self, service_reference: str | None = None) -> bytes:
        """
        Fetch a getservices listing

        Args:
            service_reference: Bouquet reference, or None for the top-level lineup

        Returns:
            Raw XML body

        Raises:
            UpstreamError: On timeout, connection failure or non-2xx status
        """
        url = self.services_url(service_reference)
        logger.debug(f"Fetching lineup: {url}")
        try:
            response = await self._client.get(url, timeout=self.lineup_timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"HTTP error! Status: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{type(e).__name__} while fetching {url}: {e}") from e

        return response.content

    async def get_picon(self, filename: str) -> bytes | None:
        """
        Fetch raw picon image bytes

        Returns:
            Image bytes, or None when the receiver answers with a non-2xx status

        Raises:
            httpx.HTTPError: On timeout or connection failure
        """
        url = self.picon_url(filename)
        response = await self._client.get(url, timeout=self.picon_timeout)
        if not response.is_success:
            logger.debug(f"Picon not available ({response.status_code}): {url}")
            return None
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
