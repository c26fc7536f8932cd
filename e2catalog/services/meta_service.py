"""
Meta Mapping

Turns channels into catalog items and remembers which channel each item
id stands for, so stream requests can be resolved later.
"""
from collections import OrderedDict
import logging

from e2catalog.schemas import MetaPreview
from e2catalog.services.lineup_types import Channel, MetaDetails
from e2catalog.services.picon_service import PiconService
from e2catalog.utils.identifiers import derive_meta_id

logger = logging.getLogger(__name__)


class MetaRegistry:
    """
    Registry of catalog item ids.

    Grows with every mapped channel; max_entries > 0 turns it into an LRU
    bounded to that many ids.
    """

    def __init__(self, picons: PiconService, *, max_entries: int = 0):
        self._picons = picons
        self.max_entries = max_entries
        self._details: OrderedDict[str, MetaDetails] = OrderedDict()

    def map_to_meta(self, channel: Channel, bouquet_id: str) -> MetaPreview:
        """
        Map a channel to its catalog item

        Uses only picons that are already cached; never fetches.

        Args:
            channel: Channel to expose
            bouquet_id: Catalog id of the bouquet it was listed in

        Returns:
            Catalog item for the channel
        """
        meta_id = derive_meta_id(bouquet_id, channel.service_reference)
        self._register(meta_id, MetaDetails(
            name=channel.name,
            service_reference=channel.service_reference,
            bouquet_id=bouquet_id
        ))

        return MetaPreview(
            id=meta_id,
            name=channel.name,
            poster=self._picons.cached_picon(channel.service_reference),
            genres=["HD"] if channel.is_hd else None
        )

    def lookup(self, meta_id: str) -> MetaDetails | None:
        details = self._details.get(meta_id)
        if details is not None and self.max_entries:
            self._details.move_to_end(meta_id)
        return details

    def _register(self, meta_id: str, details: MetaDetails) -> None:
        self._details[meta_id] = details
        if not self.max_entries:
            return

        self._details.move_to_end(meta_id)
        while len(self._details) > self.max_entries:
            evicted, _ = self._details.popitem(last=False)
            logger.debug(f"Evicted meta id {evicted}")

    def __len__(self) -> int:
        return len(self._details)
