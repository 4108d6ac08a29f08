"""
MTR network queries

Discovery listings, the cursor-paginated node walk, target resolution,
detail probes for the resolved targets and per-entity bulk exports, all
scoped to one dimension.
"""

import logging
from typing import Any, Dict, List

from beacon_probe.data.artifact_store import ArtifactStore, dimension_slug
from beacon_probe.data.beacon.beacon_client import BeaconClient
from beacon_probe.data.models import ResolvedTargets, TargetOverrides

from .exporter import DetailOperation, export_all
from .pagination import walk_pages
from .reconcile import merge_entities, section_list
from .resolver import overview_depots, overview_routes, resolve_targets

logger = logging.getLogger(__name__)

PING_ECHO = "socketio-test"


def run_mtr_queries(client: BeaconClient, store: ArtifactStore, mtr_config) -> Dict[str, Any]:
    """
    Run the MTR catalogue for the configured dimension.

    Returns:
        Summary with the resolved targets and per-phase counts
    """
    dimension = mtr_config.dimension
    print("\n=== Running MTR events ===")
    print(f"Dimension: {dimension}")

    store.write_json("mtr_beacon_ping.json", client.beacon_ping(PING_ECHO))
    write_railway_snapshots(client, store, dimension)

    overview = client.get_mtr_network_overview(dimension)
    store.write_json("mtr_network_overview.json", overview)

    depot_listing = client.list_mtr_depots(dimension)
    store.write_json("mtr_depots.json", depot_listing)

    store.write_json("mtr_fare_areas.json", client.list_mtr_fare_areas(dimension))

    station_listing = client.list_mtr_stations(dimension)
    store.write_json("mtr_stations.json", station_listing)

    node_pages = walk_nodes(client, store, dimension,
                            page_size=mtr_config.node_page_size,
                            max_pages=mtr_config.node_max_pages)

    stations = merge_entities("station", [section_list(station_listing, dimension, "stations")])
    listed_depots = merge_entities("depot", [section_list(depot_listing, dimension, "depots")])
    routes = overview_routes(overview, dimension)
    depots = overview_depots(overview, dimension, listed_depots)
    logger.info(
        f"Discovered {len(routes)} routes, {len(stations)} stations, "
        f"{len(depots)} depots in {dimension}"
    )

    targets = resolve_targets(
        dimension, overview, stations, listed_depots,
        TargetOverrides.from_config(mtr_config),
    )
    store.write_json("mtr_resolved_targets.json", targets.to_dict())

    probe_targets(client, store, targets)

    exports = {}
    if mtr_config.bulk_export:
        exports = run_bulk_exports(client, store, dimension, routes, stations, depots)
    else:
        logger.info("Bulk export disabled (BEACON_BULK_EXPORT=false)")

    return {
        "dimension": dimension,
        "node_pages": node_pages,
        "targets": targets,
        "exports": exports,
    }


def write_railway_snapshots(client: BeaconClient, store: ArtifactStore, dimension: str):
    railway = client.get_mtr_railway_snapshot(dimension)
    store.write_json("mtr_railway_snapshot.json", railway)

    snapshots = railway.get("snapshots") if isinstance(railway, dict) else None
    if not isinstance(snapshots, list) or not snapshots:
        logger.warning("Provider returned no snapshots for get_mtr_railway_snapshot.")
        return

    for snapshot in snapshots:
        snapshot = snapshot if isinstance(snapshot, dict) else {}
        slug = dimension_slug(snapshot.get("dimension") or dimension)
        store.write_json(f"mtr_railway_snapshot_{slug}.json", {
            "dimension": snapshot.get("dimension"),
            "length": snapshot.get("length"),
            "payload": snapshot.get("payload"),
        })


def walk_nodes(client: BeaconClient, store: ArtifactStore, dimension: str,
               page_size: int, max_pages: int) -> int:
    """
    Dump every node page to ``mtr_nodes/<slug>/page_NNN.json``.

    Page 1 is also copied to ``mtr_nodes_page1.json``.

    Returns:
        Number of pages written (including a trailing failure page)
    """
    subdir = f"mtr_nodes/{dimension_slug(dimension)}"
    label = "list_mtr_nodes_paginated"

    def fetch(dimension, limit, cursor=None):
        return client.list_mtr_nodes_paginated(
            dimension, cursor=cursor, limit=limit, label=f"{label}(page)"
        )

    written = 0
    for page in walk_pages(fetch, {"dimension": dimension}, page_size, max_pages, label=label):
        store.write_json(f"page_{page.number:03d}.json", page.data, subdir=subdir)
        if page.number == 1:
            store.write_json("mtr_nodes_page1.json", page.data)
        if not page.failed:
            logger.info(f"[{label}] page {page.number}: {len(page.items)} items")
        written += 1
    return written


def probe_targets(client: BeaconClient, store: ArtifactStore, targets: ResolvedTargets):
    """Detail calls for the resolved tuple; unresolved kinds are skipped."""
    dimension = targets.dimension

    if targets.route_id is not None:
        route_id = targets.route_id
        store.write_json(f"mtr_route_detail_{route_id}.json",
                         client.get_mtr_route_detail(dimension, route_id))
        store.write_json(f"mtr_route_trains_{route_id}.json",
                         client.get_mtr_route_trains(dimension, route_id))
    else:
        logger.info("No route resolved, skip route detail/trains.")

    if targets.station_id is not None:
        station_id = targets.station_id
        suffix = f"{station_id}_{targets.platform_id}" if targets.platform_id is not None else f"{station_id}"
        store.write_json(f"mtr_station_timetable_{suffix}.json",
                         client.get_mtr_station_timetable(dimension, station_id, targets.platform_id))
    else:
        logger.info("No station resolved, skip station timetable.")

    if targets.depot_id is not None:
        depot_id = targets.depot_id
        store.write_json(f"mtr_depot_trains_{depot_id}.json",
                         client.get_mtr_depot_trains(dimension, depot_id))
    else:
        logger.info("No depot resolved, skip depot trains.")


def run_bulk_exports(client: BeaconClient, store: ArtifactStore, dimension: str,
                     routes: List, stations: List, depots: List) -> Dict[str, Dict[str, int]]:
    print(f"\n--- Bulk export for {dimension} ---")
    return {
        "route": export_all(store, "route", routes, [
            DetailOperation("route_detail", lambda i: client.get_mtr_route_detail(dimension, i)),
            DetailOperation("route_trains", lambda i: client.get_mtr_route_trains(dimension, i)),
        ], dimension),
        "station": export_all(store, "station", stations, [
            DetailOperation("station_timetable", lambda i: client.get_mtr_station_timetable(dimension, i)),
        ], dimension),
        "depot": export_all(store, "depot", depots, [
            DetailOperation("depot_trains", lambda i: client.get_mtr_depot_trains(dimension, i)),
        ], dimension),
    }
