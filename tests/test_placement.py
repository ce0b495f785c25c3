"""
Tests for PlacementObserver.

These tests verify the observer correctly:
- Restricts placement to the table's regions
- Matches region names byte for byte, never by encoded name
- Fetches fresh status on every call
- Reports empty placement for servers hosting nothing of the table
"""

from unittest.mock import MagicMock

import pytest

from converge_core.placement import PlacementObserver
from converge_core.types import (
    ClusterStatus,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    ServerLoad,
)

RS1 = ServerDescriptor(host="rs1", port=16020, start_code=1)
RS2 = ServerDescriptor(host="rs2", port=16020, start_code=2)

REGION_A = RegionDescriptor(region_name=b"t1,,1.aaaa.", encoded_name="aaaa", table="t1")
REGION_B = RegionDescriptor(region_name=b"t1,m,2.bbbb.", encoded_name="bbbb", table="t1")
OTHER = RegionDescriptor(region_name=b"t2,,3.cccc.", encoded_name="cccc", table="t2")


def status(**hosted: list[bytes]) -> ClusterStatus:
    """Build a ClusterStatus from server attribute names to region names."""
    servers = {"rs1": RS1, "rs2": RS2}
    return ClusterStatus(
        loads={
            servers[key]: ServerLoad(
                server=servers[key],
                regions=tuple(RegionLoad(name=name) for name in names),
            )
            for key, names in hosted.items()
        }
    )


@pytest.fixture
def source():
    """Mock status source for table t1 with two regions."""
    mock = MagicMock()
    mock.get_table_regions.return_value = [REGION_A, REGION_B]
    return mock


class TestActualPlacement:
    def test_maps_regions_to_servers(self, source):
        source.get_cluster_status.return_value = status(
            rs1=[REGION_A.region_name, OTHER.region_name],
            rs2=[REGION_B.region_name],
        )

        snapshot = PlacementObserver(source=source).actual_placement("t1")

        assert snapshot.table == "t1"
        assert snapshot.regions_on(RS1) == frozenset({REGION_A})
        assert snapshot.regions_on(RS2) == frozenset({REGION_B})
        assert snapshot.region_count() == 2
        assert snapshot.servers() == [RS1, RS2]

    def test_other_tables_are_ignored(self, source):
        source.get_cluster_status.return_value = status(rs1=[OTHER.region_name], rs2=[])

        snapshot = PlacementObserver(source=source).actual_placement("t1")

        assert snapshot.region_count() == 0
        assert snapshot.regions_on(RS1) == frozenset()

    def test_requires_exact_region_name_bytes(self, source):
        # Same encoded suffix, different bytes: not the same region
        lookalike = b"t1,,1.aaaa"
        source.get_cluster_status.return_value = status(
            rs1=[lookalike, REGION_A.region_name.upper()],
            rs2=[],
        )

        snapshot = PlacementObserver(source=source).actual_placement("t1")

        assert snapshot.region_count() == 0

    def test_region_reported_twice_counts_twice(self, source):
        source.get_cluster_status.return_value = status(
            rs1=[REGION_A.region_name],
            rs2=[REGION_A.region_name],
        )

        snapshot = PlacementObserver(source=source).actual_placement("t1")

        assert snapshot.locate(REGION_A) == [RS1, RS2]
        assert snapshot.region_count() == 2

    def test_fetches_fresh_status_every_call(self, source):
        source.get_cluster_status.side_effect = [
            status(rs1=[REGION_A.region_name], rs2=[]),
            status(rs1=[], rs2=[REGION_A.region_name, REGION_B.region_name]),
        ]
        observer = PlacementObserver(source=source)

        first = observer.actual_placement("t1")
        second = observer.actual_placement("t1")

        assert first.region_count() == 1
        assert second.region_count() == 2
        assert second.locate(REGION_A) == [RS2]
        assert source.get_cluster_status.call_count == 2
        assert source.get_table_regions.call_count == 2

    def test_describe_uses_printable_names(self, source):
        source.get_cluster_status.return_value = status(
            rs1=[REGION_B.region_name, REGION_A.region_name],
            rs2=[],
        )

        snapshot = PlacementObserver(source=source).actual_placement("t1")

        assert snapshot.describe() == {
            "rs1,16020,1": ["t1,,1.aaaa.", "t1,m,2.bbbb."],
            "rs2,16020,2": [],
        }


class TestHelpers:
    def test_region_count_uses_catalog(self, source):
        observer = PlacementObserver(source=source)

        assert observer.region_count("t1") == 2
        source.get_cluster_status.assert_not_called()

    def test_servers_are_sorted(self, source):
        source.get_cluster_status.return_value = status(rs2=[], rs1=[])

        assert PlacementObserver(source=source).servers() == [RS1, RS2]

    def test_regions_on(self, source):
        source.get_cluster_status.return_value = status(
            rs1=[REGION_B.region_name, REGION_A.region_name],
            rs2=[],
        )

        regions = PlacementObserver(source=source).regions_on(RS1, "t1")

        assert regions == [REGION_A, REGION_B]

    def test_region_load(self, source):
        load = RegionLoad(name=REGION_A.region_name, stores=1, write_requests=42)
        source.get_cluster_status.return_value = ClusterStatus(
            loads={RS1: ServerLoad(server=RS1, regions=(load,))}
        )
        observer = PlacementObserver(source=source)

        assert observer.region_load(REGION_A, RS1) == load
        assert observer.region_load(REGION_B, RS1) is None
        assert observer.region_load(REGION_A, RS2) is None


class TestDescriptors:
    def test_region_equality_ignores_encoded_name(self):
        renamed = RegionDescriptor(
            region_name=REGION_A.region_name, encoded_name="different", table="t1"
        )

        assert renamed == REGION_A
        assert hash(renamed) == hash(REGION_A)

    def test_region_equality_requires_same_bytes(self):
        same_encoded = RegionDescriptor(
            region_name=b"t1,,9.aaaa.", encoded_name="aaaa", table="t1"
        )

        assert same_encoded != REGION_A

    def test_server_total_order(self):
        restarted = ServerDescriptor(host="rs1", port=16020, start_code=5)

        assert sorted([RS2, restarted, RS1]) == [RS1, restarted, RS2]
        assert restarted != RS1
        assert RS1.server_name == "rs1,16020,1"
        assert RS1.address == "rs1:16020"
