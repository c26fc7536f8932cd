"""
Channel Directory

Lists the channels of one bouquet, cached per bouquet reference.
"""
import logging

from e2catalog.services.cache_service import ExpiringCache
from e2catalog.services.enigma2_client import Enigma2Client, UpstreamError
from e2catalog.services.lineup_parser_service import parse_channels_xml
from e2catalog.services.lineup_types import Channel


logger = logging.getLogger(__name__)


class ChannelDirectory:
    """Per-bouquet channel listings with TTL and stale fallback."""

    def __init__(self, client: Enigma2Client, cache: ExpiringCache[str, list[Channel]]):
        self._client = client
        self._cache = cache

    async def list_channels(self, bouquet_reference: str) -> list[Channel]:
        """
        Get the channels of a bouquet

        Args:
            bouquet_reference: Bouquet service reference

        Returns:
            Channels in receiver order

        Raises:
            UpstreamError: If nothing is cached yet and the receiver fails
        """
        return await self._cache.get_or_load(
            bouquet_reference,
            lambda: self._fetch(bouquet_reference)
        )

    async def _fetch(self, bouquet_reference: str) -> list[Channel]:
        try:
            xml = await self._client.get_services(bouquet_reference)
        except UpstreamError as e:
            logger.error(f"Failed to fetch channels for bouquet: {e}")
            raise

        channels = parse_channels_xml(xml)
        logger.debug(f"Fetched {len(channels)} channels for {bouquet_reference}")
        return channels
