"""
Picon Service

Downloads channel logos from the receiver, pads them onto a square
transparent canvas and keeps them in memory as PNG data URLs.
"""
import asyncio
import base64
import io
import logging

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from e2catalog.services.cache_service import SingleFlight
from e2catalog.services.enigma2_client import Enigma2Client
from e2catalog.utils.identifiers import picon_filename


logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"
_TRANSPARENT = (0, 0, 0, 0)


def make_square_png(image_bytes: bytes, size: int = 300) -> bytes:
    """
    Fit an image into a size x size transparent canvas

    The aspect ratio is preserved and the image is centered; the
    uncovered area stays fully transparent.

    Args:
        image_bytes: Encoded source image (any format Pillow can read)
        size: Edge length of the output canvas

    Returns:
        PNG-encoded bytes

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not an image
        OSError: If the image data is truncated or corrupt
    """
    with Image.open(io.BytesIO(image_bytes)) as source:
        rgba = source.convert("RGBA")

    square = ImageOps.pad(
        rgba,
        (size, size),
        method=Image.Resampling.LANCZOS,
        color=_TRANSPARENT,
    )

    buffer = io.BytesIO()
    square.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(png_bytes: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(png_bytes).decode("ascii")


class PiconService:
    """
    Square picon pipeline with a never-expiring in-memory cache.

    Only successful results are cached, so a missing or broken picon is
    retried on the next call. Concurrent calls for the same service share
    one download.
    """

    def __init__(
        self,
        client: Enigma2Client,
        *,
        enabled: bool = True,
        size: int = 300
    ):
        self._client = client
        self.enabled = enabled
        self.size = size
        self._picons: dict[str, str] = {}
        self._flight: SingleFlight[str, str | None] = SingleFlight()

    async def get_square_picon(self, service_reference: str) -> str | None:
        """
        Get the square picon for a service as a data URL

        Args:
            service_reference: Channel service reference

        Returns:
            PNG data URL, or None when disabled, missing or unreadable
        """
        if not self.enabled:
            return None

        cached = self._picons.get(service_reference)
        if cached is not None:
            return cached

        return await self._flight.run(
            service_reference,
            lambda: self._load(service_reference)
        )

    def cached_picon(self, service_reference: str) -> str | None:
        """Cache lookup only; never touches the network."""
        return self._picons.get(service_reference)

    async def _load(self, service_reference: str) -> str | None:
        filename = picon_filename(service_reference)

        try:
            image_bytes = await self._client.get_picon(filename)
        except httpx.HTTPError as e:
            logger.debug(f"Picon fetch failed for {filename}: {type(e).__name__}")
            return None

        if not image_bytes:
            return None

        loop = asyncio.get_running_loop()
        try:
            png_bytes = await loop.run_in_executor(
                None,
                make_square_png,
                image_bytes,
                self.size
            )
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.debug(f"Picon conversion failed for {filename}: {e}")
            return None

        data_url = to_data_url(png_bytes)
        self._picons[service_reference] = data_url
        return data_url

    def __len__(self) -> int:
        return len(self._picons)
