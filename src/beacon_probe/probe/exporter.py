"""
Bulk export of per-entity detail calls.

Every discovered entity of a kind gets one file per detail operation under
``<kind>s/<dimension-slug>/``. A failing call for one entity is persisted
as a failure marker and never stops the remaining entities.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from tqdm import tqdm

from beacon_probe.data.artifact_store import ArtifactStore, dimension_slug
from beacon_probe.data.models import ENTITY_KINDS, normalize_id, read_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailOperation:
    """A per-entity call; ``fetch`` receives the entity id."""

    name: str
    fetch: Callable[[int], Any]


def exportable_id(kind: str, entity: Any) -> Optional[int]:
    """Positive numeric id of an entity or raw mapping, else None."""
    if isinstance(entity, Mapping):
        entity_id = read_id(entity, ENTITY_KINDS[kind].id_field)
    else:
        entity_id = normalize_id(getattr(entity, "entity_id", None))
    if entity_id is None or entity_id <= 0:
        return None
    return entity_id


def export_all(store: ArtifactStore,
               kind: str,
               entities: Sequence[Any],
               operations: Sequence[DetailOperation],
               dimension: str) -> Dict[str, int]:
    """
    Issue every detail operation for every entity, in order.

    Args:
        store: Artifact store for results
        kind: Entity kind ('route', 'station', 'depot')
        entities: Reconciled entities (or raw mappings) in listing order
        operations: Detail calls to make per entity
        dimension: Dimension scope, used for the output subdirectory

    Returns:
        Counts of exported calls, failed calls and skipped entities
    """
    stats = {'exported': 0, 'failed': 0, 'skipped': 0}

    if not entities:
        logger.info(f"No {kind}s discovered in {dimension}, skipping {kind} export")
        return stats

    subdir = f"{kind}s/{dimension_slug(dimension)}"

    for entity in tqdm(entities, desc=f"Exporting {kind}s", unit=kind):
        entity_id = exportable_id(kind, entity)
        if entity_id is None:
            stats['skipped'] += 1
            continue

        for operation in operations:
            file_name = f"{operation.name}_{entity_id}.json"
            try:
                response = operation.fetch(entity_id)
            except Exception as e:
                logger.error(f"[{operation.name}] {kind} {entity_id} failed: {e}")
                store.write_failure(file_name, e, subdir=subdir)
                stats['failed'] += 1
                continue
            store.write_json(file_name, response, subdir=subdir)
            stats['exported'] += 1

    logger.info(
        f"{kind.capitalize()} export complete: {stats['exported']} exported, "
        f"{stats['failed']} failed, {stats['skipped']} skipped"
    )
    return stats
