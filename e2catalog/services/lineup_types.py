"""
Shared dataclasses used across the lineup and picon pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Bouquet:
    """A channel grouping as listed by the receiver."""
    name: str
    reference: str
    id: str
    display_name: str = ""


@dataclass(slots=True, frozen=True)
class Channel:
    """A playable service inside one bouquet."""
    name: str
    service_reference: str
    is_hd: bool = False


@dataclass(slots=True, frozen=True)
class MetaDetails:
    """What a stream lookup needs to know about a mapped channel."""
    name: str
    service_reference: str
    bouquet_id: str


__all__ = ["Bouquet", "Channel", "MetaDetails"]
