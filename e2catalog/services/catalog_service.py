"""
Catalog Service

Translates directory and picon data into manifest, catalog and stream
responses for the catalog client.
"""
import logging

from e2catalog import __version__
from e2catalog.schemas import (
    CatalogDescriptor,
    Manifest,
    MetaPreview,
    StreamItem,
)
from e2catalog.services.bouquet_service import BouquetDirectory
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.enigma2_client import UpstreamError
from e2catalog.services.meta_service import MetaRegistry
from e2catalog.utils.identifiers import META_ID_PREFIX

logger = logging.getLogger(__name__)

MANIFEST_ID = "enigma2.multi.bouquet.addon"


class CatalogService:
    """Request-time view over the cached lineup."""

    def __init__(
        self,
        bouquets: BouquetDirectory,
        channels: ChannelDirectory,
        metas: MetaRegistry,
        *,
        receiver_host: str,
        stream_base_url: str
    ):
        self._bouquets = bouquets
        self._channels = channels
        self._metas = metas
        self.receiver_host = receiver_host
        self.stream_base_url = stream_base_url.rstrip("/")

    async def build_manifest(self) -> Manifest:
        """
        Build the addon manifest with one catalog per bouquet

        Raises:
            UpstreamError: If the bouquet list cannot be loaded at all
        """
        bouquets = await self._bouquets.list_bouquets()

        return Manifest(
            id=MANIFEST_ID,
            version=__version__,
            name=f"Enigma2 TV ({self.receiver_host})",
            description=f"Live TV from Enigma2 receiver at {self.receiver_host} - Multiple Bouquets",
            catalogs=[
                CatalogDescriptor(id=bouquet.id, name=bouquet.display_name)
                for bouquet in bouquets
            ],
        )

    async def get_catalog(self, catalog_id: str | None, search: str | None = None) -> list[MetaPreview]:
        """
        Get catalog items of one bouquet

        Args:
            catalog_id: Bouquet id from the manifest
            search: Optional case-insensitive substring matched against channel names

        Returns:
            Catalog items; empty when the bouquet is unknown or the receiver fails
        """
        if not catalog_id:
            return []

        try:
            bouquet = await self._bouquets.get_bouquet(catalog_id)
            if bouquet is None:
                logger.info(f"Bouquet not found: {catalog_id}")
                return []

            channels = await self._channels.list_channels(bouquet.reference)
        except UpstreamError as e:
            logger.error(f"Error in catalog handler: {e}")
            return []

        if search:
            term = search.lower()
            channels = [channel for channel in channels if term in channel.name.lower()]

        metas = [self._metas.map_to_meta(channel, bouquet.id) for channel in channels]

        with_picons = sum(1 for meta in metas if meta.poster)
        logger.info(
            f"Serving {len(metas)} channels from {bouquet.display_name} "
            f"({with_picons} with preloaded logos)"
        )
        return metas

    def get_streams(self, meta_id: str | None) -> list[StreamItem]:
        """
        Resolve a catalog item id to its live stream

        Returns:
            One live stream, or an empty list for foreign or unknown ids
        """
        if not meta_id or not meta_id.startswith(META_ID_PREFIX):
            return []

        details = self._metas.lookup(meta_id)
        if details is None:
            return []

        stream_url = f"{self.stream_base_url}/{details.service_reference}"
        logger.info(f"[Stream] {details.name}: {stream_url}")

        return [StreamItem(title=f"{details.name} (Live)", url=stream_url)]
