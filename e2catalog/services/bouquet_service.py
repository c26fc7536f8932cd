"""
Bouquet Directory

Fetches, filters and caches the receiver's bouquet list.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from e2catalog.services.cache_service import ExpiringCache
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.enigma2_client import Enigma2Client, UpstreamError
from e2catalog.services.lineup_parser_service import parse_bouquets_xml
from e2catalog.services.lineup_types import Bouquet


logger = logging.getLogger(__name__)

_CACHE_KEY = "bouquets"


class BouquetDirectory:
    """
    Bouquet listing with reference-pattern and empty-bouquet filtering.

    The whole filtered list is cached under a single key and replaced
    wholesale on every successful refresh.
    """

    def __init__(
        self,
        client: Enigma2Client,
        channels: ChannelDirectory,
        cache: ExpiringCache[str, list[Bouquet]],
        *,
        catalog_prefix: str = "E2 - ",
        ignore_patterns: Sequence[str] = (),
        ignore_empty: bool = True
    ) -> None:
        self._client = client
        self._channels = channels
        self._cache = cache
        self.catalog_prefix = catalog_prefix
        self.ignore_patterns = [pattern for pattern in ignore_patterns if pattern]
        self.ignore_empty = ignore_empty

    async def list_bouquets(self) -> list[Bouquet]:
        """
        Get all bouquets after filtering

        Raises:
            UpstreamError: If nothing is cached yet and the receiver fails
        """
        return await self._cache.get_or_load(_CACHE_KEY, self._fetch)

    async def get_bouquet(self, bouquet_id: str) -> Bouquet | None:
        """Find a bouquet by catalog id in the current listing."""
        for bouquet in await self.list_bouquets():
            if bouquet.id == bouquet_id:
                return bouquet
        return None

    async def _fetch(self) -> list[Bouquet]:
        try:
            xml = await self._client.get_services()
        except UpstreamError as e:
            logger.error("Failed to fetch bouquets: %s", e)
            raise

        bouquets = parse_bouquets_xml(xml)

        if self.ignore_patterns:
            bouquets = self._drop_ignored(bouquets)

        if self.ignore_empty:
            bouquets = await self._drop_empty(bouquets)

        bouquets = [
            dataclasses.replace(bouquet, display_name=f"{self.catalog_prefix}{bouquet.name}")
            for bouquet in bouquets
        ]

        logger.info("Found %s bouquets after filtering:", len(bouquets))
        for bouquet in bouquets:
            logger.info("  %s (%s)", bouquet.display_name, bouquet.reference)

        return bouquets

    def _drop_ignored(self, bouquets: list[Bouquet]) -> list[Bouquet]:
        kept = [
            bouquet for bouquet in bouquets
            if not any(pattern in bouquet.reference for pattern in self.ignore_patterns)
        ]
        logger.info(
            "Filtered %s bouquets, keeping %s",
            len(bouquets) - len(kept),
            len(kept),
        )
        return kept

    async def _drop_empty(self, bouquets: list[Bouquet]) -> list[Bouquet]:
        kept = []
        for bouquet in bouquets:
            try:
                channels = await self._channels.list_channels(bouquet.reference)
            except UpstreamError:
                logger.info("  Ignoring bouquet (failed to load): %s", bouquet.name)
                continue

            if channels:
                kept.append(bouquet)
            else:
                logger.info("  Ignoring empty bouquet: %s", bouquet.name)

        logger.info(
            "Filtered %s empty bouquets, keeping %s",
            len(bouquets) - len(kept),
            len(kept),
        )
        return kept
