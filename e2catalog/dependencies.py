"""
Dependency Wiring

Builds the service graph from settings and exposes it to request handlers.
Every cache is owned by the service that uses it and starts empty, so a
fresh container is a fresh process state (handy for tests).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from e2catalog.config import CustomSettings
from e2catalog.schemas import Manifest
from e2catalog.services.bouquet_service import BouquetDirectory
from e2catalog.services.cache_service import ExpiringCache
from e2catalog.services.catalog_service import CatalogService
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.enigma2_client import Enigma2Client
from e2catalog.services.meta_service import MetaRegistry
from e2catalog.services.picon_service import PiconService
from e2catalog.services.preload_service import PiconPreloader
from e2catalog.services.scheduler_service import PreloadScheduler


logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """All long-lived services of one running addon."""
    settings: CustomSettings
    client: Enigma2Client
    channels: ChannelDirectory
    bouquets: BouquetDirectory
    picons: PiconService
    metas: MetaRegistry
    preloader: PiconPreloader
    catalog: CatalogService
    scheduler: PreloadScheduler
    manifest: Manifest | None = None

    async def aclose(self) -> None:
        self.preloader.cancel()
        self.scheduler.shutdown()
        await self.client.aclose()


def build_container(
    settings: CustomSettings,
    *,
    http_client: httpx.AsyncClient | None = None
) -> ServiceContainer:
    """
    Create the service graph for the given settings.

    Args:
        settings: Loaded application settings
        http_client: Optional pre-configured client (tests pass one with a mock transport)

    Returns:
        Container with empty caches
    """
    client = Enigma2Client(
        settings.enigma2_ip,
        settings.enigma2_port,
        lineup_timeout=settings.lineup_timeout_sec,
        picon_timeout=settings.picon_timeout_sec,
        http_client=http_client,
    )

    channels = ChannelDirectory(
        client,
        ExpiringCache(settings.cache_ttl_sec, name="channels"),
    )
    bouquets = BouquetDirectory(
        client,
        channels,
        ExpiringCache(settings.cache_ttl_sec, name="bouquets"),
        catalog_prefix=settings.prefix_catalog,
        ignore_patterns=settings.ignore_bouquets,
        ignore_empty=settings.ignore_empty_bouquets,
    )
    picons = PiconService(
        client,
        enabled=settings.enigma2_picons,
        size=settings.picon_size,
    )
    metas = MetaRegistry(picons, max_entries=settings.meta_cache_max_entries)
    preloader = PiconPreloader(
        bouquets,
        channels,
        picons,
        batch_size=settings.preload_batch_size,
        batch_delay=settings.preload_batch_delay_ms / 1000,
    )
    catalog = CatalogService(
        bouquets,
        channels,
        metas,
        receiver_host=settings.enigma2_ip,
        stream_base_url=settings.stream_base_url,
    )
    scheduler = PreloadScheduler(
        preloader,
        settings.preload_cron,
        misfire_grace_sec=settings.preload_misfire_grace_sec,
    )

    logger.debug("Service container built for receiver %s", settings.enigma2_ip)

    return ServiceContainer(
        settings=settings,
        client=client,
        channels=channels,
        bouquets=bouquets,
        picons=picons,
        metas=metas,
        preloader=preloader,
        catalog=catalog,
        scheduler=scheduler,
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container attached at startup."""
    return request.app.state.container


def get_catalog_service(request: Request) -> CatalogService:
    return get_container(request).catalog
