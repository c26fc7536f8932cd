from typing import Annotated
from urllib.parse import parse_qs
from fastapi import APIRouter, Depends, Request
import logging

from e2catalog import __version__
from e2catalog.dependencies import ServiceContainer, get_catalog_service, get_container
from e2catalog.schemas import CatalogResponse, Manifest, StreamResponse
from e2catalog.services.catalog_service import MANIFEST_ID, CatalogService
from e2catalog.services.enigma2_client import UpstreamError


logger = logging.getLogger(__name__)

main_router = APIRouter()

Container = Annotated[ServiceContainer, Depends(get_container)]
Catalog = Annotated[CatalogService, Depends(get_catalog_service)]


def _parse_extra(request: Request, extra: str) -> dict[str, list[str]]:
    """
    Parse the extra-arguments path segment, decoding it only once

    The routed value is already percent-decoded, so the raw path segment
    is parsed instead; '+' and '&' inside a value stay intact.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        segment = raw_path.decode("utf-8", errors="replace").rsplit("/", 1)[-1]
        return parse_qs(segment.removesuffix(".json"))

    pairs = (part.partition("=") for part in extra.split("&"))
    return {key: [value] for key, _, value in pairs if value}


@main_router.get("/")
async def root(container: Container) -> dict:
    """Root endpoint with service information"""
    return {
        "service": "Enigma2 Catalog",
        "version": __version__,
        "receiver": container.settings.enigma2_ip,
        "endpoints": {
            "manifest": "/manifest.json - Addon manifest",
            "catalog": "/catalog/tv/{bouquet_id}.json - Channels of a bouquet",
            "stream": "/stream/tv/{channel_id}.json - Live stream of a channel",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(container: Container) -> dict:
    """Health check endpoint"""
    next_run = container.scheduler.get_next_run_time()
    return {
        "status": "ok",
        "picons_enabled": container.picons.enabled,
        "picons_cached": len(container.picons),
        "channels_mapped": len(container.metas),
        "preload_running": container.preloader.is_running(),
        "next_preload": next_run.isoformat() if next_run else None
    }


@main_router.get(
    "/manifest.json",
    response_model=Manifest,
    response_model_by_alias=True,
    response_model_exclude_none=True
)
async def get_manifest(container: Container) -> Manifest:
    """
    Addon manifest

    Built once at startup; rebuilt on demand if startup could not reach the receiver.
    """
    if container.manifest is None:
        try:
            container.manifest = await container.catalog.build_manifest()
        except UpstreamError as e:
            logger.error(f"Manifest unavailable: {e}")
            return Manifest(
                id=MANIFEST_ID,
                version=__version__,
                name=f"Enigma2 TV ({container.settings.enigma2_ip})",
                description="Receiver unreachable - no bouquets available"
            )
    return container.manifest


@main_router.get(
    "/catalog/{content_type}/{catalog_id}.json",
    response_model=CatalogResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True
)
async def get_catalog(content_type: str, catalog_id: str, catalog: Catalog) -> CatalogResponse:
    """Channels of one bouquet"""
    if content_type != "tv":
        return CatalogResponse()
    return CatalogResponse(metas=await catalog.get_catalog(catalog_id))


@main_router.get(
    "/catalog/{content_type}/{catalog_id}/{extra}.json",
    response_model=CatalogResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True
)
async def search_catalog(
    content_type: str,
    catalog_id: str,
    extra: str,
    request: Request,
    catalog: Catalog
) -> CatalogResponse:
    """
    Channels of one bouquet with extra arguments

    Args:
        extra: URL-encoded extra arguments, e.g. 'search=news'
    """
    if content_type != "tv":
        return CatalogResponse()
    search = _parse_extra(request, extra).get("search", [None])[0]
    return CatalogResponse(metas=await catalog.get_catalog(catalog_id, search=search))


@main_router.get(
    "/stream/{content_type}/{meta_id}.json",
    response_model=StreamResponse,
    response_model_by_alias=True
)
async def get_streams(content_type: str, meta_id: str, catalog: Catalog) -> StreamResponse:
    """Live stream for a channel listed in a catalog"""
    if content_type != "tv":
        return StreamResponse()
    return StreamResponse(streams=catalog.get_streams(meta_id))
