"""
Tests for entity reconciliation and id normalisation.
"""

import pytest

from beacon_probe.data.models import Depot, Station, normalize_id
from beacon_probe.probe.reconcile import dimension_section, merge_entities, section_list


class TestNormalizeId:

    @pytest.mark.parametrize("raw,expected", [
        (7, 7),
        (7.0, 7),
        ("42", 42),
        (" 42 ", 42),
        ("-3", -3),
        (0, 0),
    ])
    def test_valid_ids(self, raw, expected):
        assert normalize_id(raw) == expected

    @pytest.mark.parametrize("raw", [
        None, True, False, 7.5, float("nan"), float("inf"), "", "abc", "1e3", "4.2", [], {},
    ])
    def test_invalid_ids(self, raw):
        assert normalize_id(raw) is None


class TestMergeEntities:

    def test_first_occurrence_wins(self):
        flat = [{"depotId": 3, "name": "Flat"}]
        nested = [{"depotId": 3, "name": "Nested"}, {"depotId": 4, "name": "Only nested"}]

        merged = merge_entities("depot", [flat, nested])

        assert [d.depot_id for d in merged] == [3, 4]
        assert merged[0].name == "Flat"

    def test_preserves_first_seen_order_across_lists(self):
        merged = merge_entities("route", [
            [{"routeId": 9}, {"routeId": 2}],
            [{"routeId": 5}, {"routeId": 9}, {"routeId": 1}],
        ])
        assert [r.route_id for r in merged] == [9, 2, 5, 1]

    def test_drops_items_without_valid_id(self):
        merged = merge_entities("station", [[
            {"stationId": "abc"},
            {"name": "no id"},
            "not a mapping",
            None,
            {"stationId": 1},
            {"stationId": "2"},
        ]])
        assert [s.station_id for s in merged] == [1, 2]

    def test_length_equals_distinct_valid_ids(self):
        lists = [
            [{"depotId": 1}, {"depotId": 2}, {"depotId": "x"}],
            [{"depotId": 2}, {"depotId": 3.0}, {"depotId": 1}],
        ]
        assert len(merge_entities("depot", lists)) == 3

    def test_accepts_parsed_entities(self):
        parsed = [Depot(depot_id=8, name="Parsed")]
        merged = merge_entities("depot", [parsed, [{"depotId": 8, "name": "Raw"}, {"depotId": 9}]])
        assert merged[0] is parsed[0]
        assert [d.depot_id for d in merged] == [8, 9]

    def test_falls_back_to_generic_id_field(self):
        merged = merge_entities("route", [[{"id": 11, "name": "Loop"}]])
        assert merged[0].route_id == 11

    def test_absent_listings_are_empty(self):
        assert merge_entities("depot", [None, []]) == []

    def test_station_platforms_keep_listing_order(self):
        station = Station.from_payload({
            "stationId": 2,
            "platforms": [
                {"platformId": 10, "routeIds": [7]},
                {"platformId": "bad"},
                {"platformId": 9, "routeIds": ["7", None, "x"]},
            ],
        })
        assert [p.platform_id for p in station.platforms] == [10, 9]
        assert station.platforms[1].route_ids == frozenset({7})
        assert all(p.station_id == 2 for p in station.platforms)


class TestDimensionSection:

    def test_selects_matching_dimension(self):
        payload = {"dimensions": [
            {"dimension": "minecraft:the_nether", "routes": [{"routeId": 1}]},
            {"dimension": "minecraft:overworld", "routes": [{"routeId": 2}]},
        ]}
        assert section_list(payload, "minecraft:overworld", "routes") == [{"routeId": 2}]

    def test_missing_dimension_is_empty(self):
        payload = {"dimensions": [{"dimension": "minecraft:the_end", "routes": [{"routeId": 1}]}]}
        assert section_list(payload, "minecraft:overworld", "routes") == []

    def test_single_dimension_payload(self):
        payload = {"dimension": "minecraft:overworld", "stations": [{"stationId": 1}]}
        assert dimension_section(payload, "minecraft:overworld") is payload

    def test_other_single_dimension_payload_is_empty(self):
        payload = {"dimension": "minecraft:the_end", "stations": [{"stationId": 1}]}
        assert section_list(payload, "minecraft:overworld", "stations") == []

    @pytest.mark.parametrize("payload", [None, [], "oops", {"routes": "not a list"}])
    def test_malformed_payload_is_empty(self, payload):
        assert section_list(payload, "minecraft:overworld", "routes") == []
