from typing import Iterator, Optional
import logging
import re

from lxml import etree # type: ignore

from e2catalog.services.lineup_types import Bouquet, Channel
from e2catalog.utils.identifiers import derive_bouquet_id

logger = logging.getLogger(__name__)

BOUQUET_MARKER = "FROM BOUQUET"
SEPARATOR_PREFIX = "---"
NOT_AVAILABLE_NAME = "<n/a>"
MARKER_SERVICE_TOKEN = "1:64:"

# '&' not starting an entity or character reference
_BARE_AMPERSAND = re.compile(rb"&(?!#?\w+;)")


def parse_bouquets_xml(xml: str | bytes) -> list[Bouquet]:
    """
    Parse an OpenWebif getservices response into bouquets

    Only entries whose reference points at a bouquet container are kept.
    Separators and placeholder names are skipped.

    Args:
        xml: Raw response body

    Returns:
        Bouquets in document order (display_name left empty)
    """
    bouquets = []

    for name, reference in _iter_services(xml):
        if not reference or BOUQUET_MARKER not in reference:
            continue
        if not name or name.startswith(SEPARATOR_PREFIX) or name == NOT_AVAILABLE_NAME:
            continue

        bouquets.append(Bouquet(
            name=name,
            reference=reference,
            id=derive_bouquet_id(reference)
        ))

    logger.debug(f"Parsed {len(bouquets)} bouquets from lineup")
    return bouquets


def parse_channels_xml(xml: str | bytes) -> list[Channel]:
    """
    Parse the service list of a single bouquet into channels

    Args:
        xml: Raw response body

    Returns:
        Channels in document order, separators and marker services removed
    """
    channels = []

    for name, reference in _iter_services(xml):
        if not name or not reference:
            continue
        if name.startswith(SEPARATOR_PREFIX) or MARKER_SERVICE_TOKEN in reference:
            continue

        channels.append(Channel(
            name=name,
            service_reference=reference,
            is_hd="hd" in name.lower()
        ))

    logger.debug(f"Parsed {len(channels)} channels from bouquet")
    return channels


def _iter_services(xml: str | bytes) -> Iterator[tuple[Optional[str], Optional[str]]]:
    """Yield (name, reference) for every e2service block"""
    root = _load_root(xml)
    if root is None:
        return

    for service in root.iter('e2service'):
        yield _get_text(service, 'e2servicename'), _get_text(service, 'e2servicereference')


def _load_root(xml: str | bytes) -> Optional[etree._Element]:
    """Load the document tolerantly; empty or broken input gives None"""
    if isinstance(xml, str):
        xml = xml.encode('utf-8')
    if not xml or not xml.strip():
        return None

    # Receivers emit unescaped '&' in names; recover mode would drop it
    xml = _BARE_AMPERSAND.sub(b"&amp;", xml)

    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(xml, parser)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Unparseable lineup payload: {e}")
        return None


def _get_text(element: etree._Element, tag: str) -> Optional[str]:
    """Safely extract trimmed text from a direct child element"""
    child = element.find(tag)
    if child is None or not child.text:
        return None
    return child.text.strip() or None
