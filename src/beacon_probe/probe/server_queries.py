"""
Core server queries

Status, time, online players, per-player lookups, forced refresh and the
MTR activity log / session listings. Each call is single-shot: a failure
propagates and ends the category.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict

from beacon_probe.data.artifact_store import ArtifactStore, sanitize
from beacon_probe.data.beacon.beacon_client import BeaconClient

logger = logging.getLogger(__name__)


def format_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def player_filters(player) -> Dict[str, str]:
    filters = {}
    if player.uuid:
        filters["playerUuid"] = player.uuid
    if player.name:
        filters["playerName"] = player.name
    return filters


def run_core_queries(client: BeaconClient, store: ArtifactStore, player, today: date = None) -> int:
    """
    Run the core catalogue in order.

    Returns:
        Number of artifacts written
    """
    start = store.written
    print("\n=== Running core events ===")

    store.write_json("server_status.json", client.get_status())
    store.write_json("server_time.json", client.get_server_time())
    store.write_json("online_players.json", client.list_online_players())

    if player.configured:
        suffix = sanitize(player.label)
        store.write_json(f"advancements_{suffix}.json",
                         client.get_player_advancements(player.uuid, player.name))
        store.write_json(f"stats_{suffix}.json",
                         client.get_player_stats(player.uuid, player.name))
        store.write_json(f"nbt_{suffix}.json",
                         client.get_player_nbt(player.uuid, player.name))
        store.write_json(f"player_identity_{suffix}.json",
                         client.lookup_player_identity(player.uuid, player.name))
    else:
        logger.info("BEACON_PLAYER_UUID/BEACON_PLAYER_NAME not set, skip player-specific queries.")

    store.write_json("force_update.json", client.force_update())

    run_log_queries(client, store, player, today or date.today())
    return store.written - start


def run_log_queries(client: BeaconClient, store: ArtifactStore, player, today: date):
    """MTR activity logs and player session listings."""
    filters = player_filters(player)
    today_str = format_date(today)

    mtr_list = client.get_player_mtr_logs(page=1, page_size=20, label="get_player_mtr_logs", **filters)
    store.write_json("mtr_logs_page1.json", mtr_list)

    first_id = _first_record_id(mtr_list)
    if first_id is not None:
        detail = client.get_mtr_log_detail(first_id)
        store.write_json(f"mtr_log_{sanitize(first_id)}.json", detail)
    else:
        logger.info("No MTR log records on page 1, skip log detail query.")

    mtr_today = client.get_player_mtr_logs(
        page=1, page_size=50, label="get_player_mtr_logs(singleDate)",
        singleDate=today_str, **filters
    )
    store.write_json(f"mtr_logs_{today_str}.json", mtr_today)

    start_str = format_date(today - timedelta(days=6))
    mtr_last7 = client.get_player_mtr_logs(
        page=1, page_size=50, label="get_player_mtr_logs(range7d)",
        startDate=start_str, endDate=today_str, **filters
    )
    store.write_json(f"mtr_logs_{start_str}_to_{today_str}.json", mtr_last7)

    sessions = client.get_player_sessions(page=1, page_size=50, label="get_player_sessions(page1)")
    store.write_json("player_sessions_page1.json", sessions)

    identities = client.list_player_identities(page=1, page_size=200, label="list_player_identities(page1)")
    store.write_json("player_identities_page1.json", identities)

    sessions_today = client.get_player_sessions(
        page=1, page_size=100, label="get_player_sessions(today)", singleDate=today_str
    )
    store.write_json(f"player_sessions_{today_str}.json", sessions_today)

    sessions_join = client.get_player_sessions(
        page=1, page_size=100, label="get_player_sessions(join_today)",
        eventType="JOIN", singleDate=today_str
    )
    store.write_json(f"player_sessions_JOIN_{today_str}.json", sessions_join)

    if player.configured:
        by_player = client.get_player_sessions(
            page=1, page_size=100, label="get_player_sessions(by_player)", **filters
        )
        store.write_json(f"player_sessions_{sanitize(player.label)}.json", by_player)


def _first_record_id(listing) -> Any:
    if not isinstance(listing, dict):
        return None
    records = listing.get("records")
    if not isinstance(records, list) or not records:
        return None
    first = records[0]
    if not isinstance(first, dict):
        return None
    return first.get("id")
