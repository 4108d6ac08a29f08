"""
MTR entity models for Beacon Probe.

Entities are built from ad hoc response mappings. Every field is read as
possibly absent; an entity whose id does not normalise to an integer is
not built at all (``from_payload`` returns None).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional


def normalize_id(value: Any) -> Optional[int]:
    """
    Coerce a raw identifier to int.

    Accepts ints (not bools), integral floats and base-10 integer strings.
    Anything else yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")) or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text[:1] in ("-", "+"):
            digits = text[1:]
        else:
            digits = text
        if digits.isdigit() and digits.isascii():
            return int(text)
    return None


def read_id(data: Mapping, field_name: str) -> Optional[int]:
    """Read ``field_name`` (falling back to ``id``) as a normalised id."""
    if not isinstance(data, Mapping):
        return None
    value = data.get(field_name)
    if value is None:
        value = data.get("id")
    return normalize_id(value)


def read_id_set(data: Mapping, field_name: str = "routeIds") -> FrozenSet[int]:
    raw = data.get(field_name) if isinstance(data, Mapping) else None
    if not isinstance(raw, (list, tuple)):
        return frozenset()
    ids = (normalize_id(v) for v in raw)
    return frozenset(i for i in ids if i is not None)


def read_list(data: Any, field_name: str) -> List[Any]:
    if not isinstance(data, Mapping):
        return []
    value = data.get(field_name)
    return list(value) if isinstance(value, list) else []


@dataclass(frozen=True)
class Route:
    route_id: int
    name: Optional[str] = None
    hidden: Optional[bool] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    id_field = "routeId"

    @property
    def entity_id(self) -> int:
        return self.route_id

    @classmethod
    def from_payload(cls, data: Any) -> Optional["Route"]:
        route_id = read_id(data, cls.id_field)
        if route_id is None:
            return None
        hidden = data.get("hidden")
        return cls(
            route_id=route_id,
            name=data.get("name"),
            hidden=hidden if isinstance(hidden, bool) else None,
            raw=dict(data),
        )


@dataclass(frozen=True)
class Platform:
    platform_id: int
    station_id: Optional[int] = None
    name: Optional[str] = None
    route_ids: FrozenSet[int] = frozenset()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    id_field = "platformId"

    @property
    def entity_id(self) -> int:
        return self.platform_id

    def serves(self, route_id: Optional[int]) -> bool:
        return route_id is not None and route_id in self.route_ids

    @classmethod
    def from_payload(cls, data: Any, station_id: Optional[int] = None) -> Optional["Platform"]:
        platform_id = read_id(data, cls.id_field)
        if platform_id is None:
            return None
        if station_id is None:
            station_id = normalize_id(data.get("stationId"))
        return cls(
            platform_id=platform_id,
            station_id=station_id,
            name=data.get("name"),
            route_ids=read_id_set(data),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Station:
    """A station owns its platforms, kept in listing order."""

    station_id: int
    name: Optional[str] = None
    platforms: tuple = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    id_field = "stationId"

    @property
    def entity_id(self) -> int:
        return self.station_id

    @classmethod
    def from_payload(cls, data: Any) -> Optional["Station"]:
        station_id = read_id(data, cls.id_field)
        if station_id is None:
            return None
        platforms = []
        seen = set()
        for item in read_list(data, "platforms"):
            platform = Platform.from_payload(item, station_id=station_id)
            if platform is None or platform.platform_id in seen:
                continue
            seen.add(platform.platform_id)
            platforms.append(platform)
        return cls(
            station_id=station_id,
            name=data.get("name"),
            platforms=tuple(platforms),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Depot:
    depot_id: int
    name: Optional[str] = None
    route_ids: FrozenSet[int] = frozenset()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    id_field = "depotId"

    @property
    def entity_id(self) -> int:
        return self.depot_id

    def serves(self, route_id: Optional[int]) -> bool:
        return route_id is not None and route_id in self.route_ids

    @classmethod
    def from_payload(cls, data: Any) -> Optional["Depot"]:
        depot_id = read_id(data, cls.id_field)
        if depot_id is None:
            return None
        return cls(
            depot_id=depot_id,
            name=data.get("name"),
            route_ids=read_id_set(data),
            raw=dict(data),
        )


ENTITY_KINDS = {
    "route": Route,
    "station": Station,
    "platform": Platform,
    "depot": Depot,
}


@dataclass(frozen=True)
class TargetOverrides:
    """Caller-supplied ids; None means resolve automatically."""

    route_id: Optional[int] = None
    station_id: Optional[int] = None
    platform_id: Optional[int] = None
    depot_id: Optional[int] = None

    @classmethod
    def from_config(cls, mtr_config) -> "TargetOverrides":
        return cls(
            route_id=normalize_id(mtr_config.route_id),
            station_id=normalize_id(mtr_config.station_id),
            platform_id=normalize_id(mtr_config.platform_id),
            depot_id=normalize_id(mtr_config.depot_id),
        )


NOT_FOUND = "not-found"


@dataclass(frozen=True)
class Resolution:
    """One resolved id plus the rule that produced it."""

    entity_id: Optional[int] = None
    rule: str = NOT_FOUND

    @property
    def found(self) -> bool:
        return self.entity_id is not None


@dataclass(frozen=True)
class ResolvedTargets:
    dimension: str
    route: Resolution = Resolution()
    station: Resolution = Resolution()
    platform: Resolution = Resolution()
    depot: Resolution = Resolution()

    @property
    def route_id(self) -> Optional[int]:
        return self.route.entity_id

    @property
    def station_id(self) -> Optional[int]:
        return self.station.entity_id

    @property
    def platform_id(self) -> Optional[int]:
        return self.platform.entity_id

    @property
    def depot_id(self) -> Optional[int]:
        return self.depot.entity_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "routeId": self.route_id,
            "stationId": self.station_id,
            "platformId": self.platform_id,
            "depotId": self.depot_id,
            "rules": {
                "route": self.route.rule,
                "station": self.station.rule,
                "platform": self.platform.rule,
                "depot": self.depot.rule,
            },
        }
