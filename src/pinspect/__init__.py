"""Prompt inspector with switchable JSON line-break views."""

from pinspect.anchor import build_anchor, find_anchor
from pinspect.transcode import (
    Representation,
    is_likely_json,
    map_friendly_to_raw,
    map_raw_to_friendly,
    to_friendly,
    to_raw,
)

__all__ = [
    "Representation",
    "build_anchor",
    "find_anchor",
    "is_likely_json",
    "map_friendly_to_raw",
    "map_raw_to_friendly",
    "to_friendly",
    "to_raw",
]
