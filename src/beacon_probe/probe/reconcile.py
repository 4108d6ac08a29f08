"""
Entity reconciliation.

The same MTR collection is reported by more than one endpoint (the flat
depot listing and the depots nested in the network overview, for
instance). ``merge_entities`` folds those listings into one canonical,
id-keyed working set.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from beacon_probe.data.models import ENTITY_KINDS, read_list

logger = logging.getLogger(__name__)


def merge_entities(kind: str, lists: Iterable[Iterable[Any]]) -> List[Any]:
    """
    Merge raw entity listings of one kind.

    Args:
        kind: 'route', 'station', 'platform' or 'depot'
        lists: Listings in priority order, of raw mappings or parsed entities

    Returns:
        Entities deduplicated by id, first occurrence wins, in first-seen order.
        Items without a valid numeric id are dropped.
    """
    model = ENTITY_KINDS[kind]
    merged = {}
    dropped = 0

    for listing in lists:
        for item in listing or []:
            entity = item if isinstance(item, model) else model.from_payload(item)
            if entity is None:
                dropped += 1
                continue
            if entity.entity_id not in merged:
                merged[entity.entity_id] = entity

    if dropped:
        logger.debug(f"Dropped {dropped} {kind} entries without a valid id")
    return list(merged.values())


def dimension_section(payload: Any, dimension: Optional[str]) -> Mapping:
    """
    Select the part of a response that belongs to ``dimension``.

    Responses either carry a ``dimensions`` list of per-dimension entries or
    are already scoped to a single dimension.
    """
    if not isinstance(payload, Mapping):
        return {}
    entries = payload.get("dimensions")
    if isinstance(entries, list):
        for entry in entries:
            if isinstance(entry, Mapping) and entry.get("dimension") == dimension:
                return entry
        return {}
    scoped = payload.get("dimension")
    if scoped is not None and dimension is not None and scoped != dimension:
        return {}
    return payload


def section_list(payload: Any, dimension: Optional[str], field_name: str) -> List[Any]:
    """Read ``field_name`` from the dimension's section; absent means empty."""
    return read_list(dimension_section(payload, dimension), field_name)
