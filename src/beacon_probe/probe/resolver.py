"""
Target resolution for MTR detail probes.

Detail endpoints need a concrete route, station, platform and depot id.
When the caller supplies none, one workable tuple is picked from the
discovered data. Each entity kind is resolved by walking an ordered list
of (rule name, strategy) pairs; the first strategy that yields a value
wins, and its rule name is recorded next to the id.

Automatic picks are keyed on the automatically resolved route, so an
explicit id for one kind never changes what is picked for another. The
one exception is the platform, which belongs to its station: an explicit
station re-runs platform selection against that station's platforms.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from beacon_probe.data.models import (
    Depot, Platform, Resolution, ResolvedTargets, Route, Station, TargetOverrides,
)
from .reconcile import merge_entities, section_list

logger = logging.getLogger(__name__)

EXPLICIT = "explicit"

Strategy = Tuple[str, Callable[..., Any]]


def first_match(strategies: Iterable[Strategy], *args) -> Tuple[Optional[str], Any]:
    """Run strategies in order; return (rule, value) of the first hit."""
    for rule, strategy in strategies:
        value = strategy(*args)
        if value is not None:
            return rule, value
    return None, None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def _first_visible_route(routes: Sequence[Route]) -> Optional[Route]:
    for route in routes:
        if route.hidden is False:
            return route
    return None


def _first_route(routes: Sequence[Route]) -> Optional[Route]:
    return routes[0] if routes else None


ROUTE_STRATEGIES: List[Strategy] = [
    ("visible-route", _first_visible_route),
    ("first-route", _first_route),
]


def resolve_route(routes: Sequence[Route]) -> Resolution:
    rule, route = first_match(ROUTE_STRATEGIES, routes)
    return Resolution(route.route_id, rule) if route else Resolution()


# ---------------------------------------------------------------------------
# Stations and platforms
# ---------------------------------------------------------------------------

def _route_platform(platforms: Sequence[Platform], route_id: Optional[int]) -> Optional[Platform]:
    for platform in platforms:
        if platform.serves(route_id):
            return platform
    return None


def _any_platform(platforms: Sequence[Platform], route_id: Optional[int]) -> Optional[Platform]:
    return platforms[0] if platforms else None


PLATFORM_STRATEGIES: List[Strategy] = [
    ("route-platform", _route_platform),
    ("any-platform", _any_platform),
]


def _station_with_route_platform(stations: Sequence[Station], route_id: Optional[int]):
    for station in stations:
        platform = _route_platform(station.platforms, route_id)
        if platform is not None:
            return station, platform
    return None


def _station_with_any_platform(stations: Sequence[Station], route_id: Optional[int]):
    for station in stations:
        if station.platforms:
            return station, station.platforms[0]
    return None


def _first_station(stations: Sequence[Station], route_id: Optional[int]):
    return (stations[0], None) if stations else None


STATION_STRATEGIES: List[Strategy] = [
    ("route-platform", _station_with_route_platform),
    ("any-platform", _station_with_any_platform),
    ("first-station", _first_station),
]


def pick_station_platform(stations: Sequence[Station], route_id: Optional[int]):
    """Return (rule, station, platform); station and platform may be None."""
    rule, pick = first_match(STATION_STRATEGIES, stations, route_id)
    if pick is None:
        return None, None, None
    station, platform = pick
    return rule, station, platform


def resolve_station_platform(stations: Sequence[Station],
                             route_id: Optional[int]) -> Tuple[Resolution, Resolution]:
    return _station_platform_resolutions(*pick_station_platform(stations, route_id))


def _station_platform_resolutions(rule, station, platform) -> Tuple[Resolution, Resolution]:
    if station is None:
        return Resolution(), Resolution()
    if platform is None:
        return Resolution(station.station_id, rule), Resolution()
    return Resolution(station.station_id, rule), Resolution(platform.platform_id, rule)


def resolve_platform_for_station(station_id: int,
                                 stations: Sequence[Station],
                                 route_id: Optional[int],
                                 auto_platform: Optional[Platform]) -> Resolution:
    """Pick a platform of an explicitly requested station."""
    station = next((s for s in stations if s.station_id == station_id), None)
    if station is not None:
        rule, platform = first_match(PLATFORM_STRATEGIES, station.platforms, route_id)
        return Resolution(platform.platform_id, rule) if platform else Resolution()
    if auto_platform is not None and auto_platform.station_id == station_id:
        return Resolution(auto_platform.platform_id, "auto-platform")
    return Resolution()


# ---------------------------------------------------------------------------
# Depots
# ---------------------------------------------------------------------------

def _route_depot(depots: Sequence[Depot], route_id: Optional[int]) -> Optional[Depot]:
    for depot in depots:
        if depot.serves(route_id):
            return depot
    return None


def _first_depot(depots: Sequence[Depot], route_id: Optional[int]) -> Optional[Depot]:
    return depots[0] if depots else None


DEPOT_STRATEGIES: List[Strategy] = [
    ("route-depot", _route_depot),
    ("first-depot", _first_depot),
]


def resolve_depot(depots: Sequence[Depot], route_id: Optional[int]) -> Resolution:
    rule, depot = first_match(DEPOT_STRATEGIES, depots, route_id)
    return Resolution(depot.depot_id, rule) if depot else Resolution()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def overview_routes(overview: Any, dimension: str) -> List[Route]:
    return merge_entities("route", [section_list(overview, dimension, "routes")])


def overview_depots(overview: Any, dimension: str, depots: Sequence[Depot] = ()) -> List[Depot]:
    """Listed depots first, then any the overview adds."""
    return merge_entities("depot", [depots, section_list(overview, dimension, "depots")])


def resolve_targets(dimension: str,
                    overview: Any,
                    stations: Sequence[Station],
                    depots: Sequence[Depot],
                    overrides: TargetOverrides = None) -> ResolvedTargets:
    """
    Resolve one (route, station, platform, depot) tuple for a dimension.

    Station, platform and depot preferences follow the automatically picked
    route even when an explicit route id is given.

    Args:
        dimension: Dimension scope
        overview: Raw network overview response (source of routes and extra depots)
        stations: Reconciled stations
        depots: Reconciled depots from the depot listing
        overrides: Explicit ids, each short-circuiting its own kind

    Returns:
        ResolvedTargets; unresolved kinds carry a not-found Resolution
    """
    overrides = overrides or TargetOverrides()
    routes = overview_routes(overview, dimension)
    all_depots = overview_depots(overview, dimension, depots)

    auto_route = resolve_route(routes)
    auto_route_id = auto_route.entity_id
    pick = pick_station_platform(stations, auto_route_id)
    platform_pick = pick[2]
    auto_station, auto_platform = _station_platform_resolutions(*pick)

    route = Resolution(overrides.route_id, EXPLICIT) if overrides.route_id is not None else auto_route

    if overrides.station_id is not None:
        station = Resolution(overrides.station_id, EXPLICIT)
        if overrides.platform_id is not None:
            platform = Resolution(overrides.platform_id, EXPLICIT)
        else:
            platform = resolve_platform_for_station(
                overrides.station_id, stations, auto_route_id, platform_pick
            )
    else:
        station = auto_station
        if overrides.platform_id is not None:
            platform = Resolution(overrides.platform_id, EXPLICIT)
        else:
            platform = auto_platform

    if overrides.depot_id is not None:
        depot = Resolution(overrides.depot_id, EXPLICIT)
    else:
        depot = resolve_depot(all_depots, auto_route_id)

    targets = ResolvedTargets(
        dimension=dimension, route=route, station=station, platform=platform, depot=depot
    )
    for kind in ("route", "station", "platform", "depot"):
        resolution = getattr(targets, kind)
        if resolution.found:
            logger.info(f"Resolved {kind} {resolution.entity_id} ({resolution.rule}) in {dimension}")
        else:
            logger.info(f"No {kind} resolved in {dimension}")
    return targets

