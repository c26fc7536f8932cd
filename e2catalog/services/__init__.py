"""
Services package for the Enigma2 catalog addon

This package contains the lineup acquisition, caching and picon pipeline.
"""
from e2catalog.services.bouquet_service import BouquetDirectory
from e2catalog.services.catalog_service import CatalogService
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.enigma2_client import Enigma2Client, UpstreamError
from e2catalog.services.lineup_parser_service import parse_bouquets_xml, parse_channels_xml
from e2catalog.services.meta_service import MetaRegistry
from e2catalog.services.picon_service import PiconService
from e2catalog.services.preload_service import PiconPreloader, PreloadSummary

__all__ = [
    'BouquetDirectory',
    'CatalogService',
    'ChannelDirectory',
    'Enigma2Client',
    'UpstreamError',
    'parse_bouquets_xml',
    'parse_channels_xml',
    'MetaRegistry',
    'PiconService',
    'PiconPreloader',
    'PreloadSummary',
]
