"""
Tests for MoveVerifier.

These tests verify move verification correctly:
- Redelivers dropped move commands until the region lands
- Re-issues the move at most max_iterations times
- Succeeds only on a byte-exact region name match on the target
- Times out with the target's last observed region names
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from converge_core.budget import RetryBudget
from converge_core.context import ConvergenceContext
from converge_core.errors import ConvergenceTimeoutError
from converge_core.move import MoveVerifier
from converge_core.poller import TimedOut
from converge_core.simulated import SimulatedCluster
from converge_core.types import (
    ClusterStatus,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    ServerLoad,
)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def cluster():
    """Two servers, one table with two regions (one on each server)."""
    cluster = SimulatedCluster.with_servers(2)
    cluster.create_table("t1", split_keys=[b"m"])
    return cluster


def make_context(admin, sleeps, max_iterations=200):
    return ConvergenceContext(
        admin=admin,
        budget=RetryBudget(max_iterations=max_iterations, interval=timedelta(milliseconds=100)),
        sleep=sleeps.append,
    )


def first_region(cluster) -> RegionDescriptor:
    return cluster.get_table_regions("t1")[0]


class TestMove:
    def test_move_lands_on_target(self, cluster, sleeps):
        region = first_region(cluster)
        source_server = cluster.server_of(region)
        target = next(s for s in cluster.servers if s != source_server)

        outcome = MoveVerifier(make_context(cluster, sleeps)).move(region, target)

        assert outcome.converged
        assert cluster.server_of(region) == target
        assert cluster.move_calls == 1

    def test_dropped_moves_are_redelivered(self, cluster, sleeps):
        region = first_region(cluster)
        target = next(s for s in cluster.servers if s != cluster.server_of(region))
        cluster.drop_moves = 3

        outcome = MoveVerifier(make_context(cluster, sleeps)).move(region, target)

        assert outcome.converged
        assert cluster.server_of(region) == target
        # initial move + 3 redeliveries, the last of which lands
        assert cluster.move_calls == 4
        assert outcome.attempts == 4

    def test_move_with_propagation_delay(self, sleeps):
        cluster = SimulatedCluster.with_servers(3, propagation_delay=4)
        cluster.create_table("t1")
        region = first_region(cluster)
        target = cluster.servers[2]

        outcome = MoveVerifier(make_context(cluster, sleeps)).move(region, target)

        assert outcome.converged
        assert cluster.server_of(region) == target

    def test_region_already_on_target(self, cluster, sleeps):
        region = first_region(cluster)
        target = cluster.server_of(region)

        outcome = MoveVerifier(make_context(cluster, sleeps)).verify_move(region, target)

        assert outcome.attempts == 1
        assert cluster.move_calls == 0

    def test_refused_move_raises(self, cluster, sleeps):
        region = first_region(cluster)
        target = next(s for s in cluster.servers if s != cluster.server_of(region))
        cluster.refuse_moves_to.add(target)

        with pytest.raises(ConvergenceTimeoutError) as exc_info:
            MoveVerifier(make_context(cluster, sleeps, max_iterations=5)).move(region, target)

        assert exc_info.value.diagnostics["region"] == region.name


class TestVerifyMoveTimeout:
    def test_never_accepting_target(self, cluster, sleeps):
        """200 x 100ms budget against a server that never accepts the region."""
        region = first_region(cluster)
        target = next(s for s in cluster.servers if s != cluster.server_of(region))
        cluster.refuse_moves_to.add(target)

        outcome = MoveVerifier(make_context(cluster, sleeps)).verify_move(region, target)

        assert isinstance(outcome, TimedOut)
        assert outcome.attempts == 200
        assert cluster.move_calls == 200
        assert sum(sleeps) == pytest.approx(19.9)
        assert outcome.diagnostics["region"] == region.name
        assert outcome.diagnostics["target"] == str(target)
        observed = outcome.diagnostics["observed"]
        assert region.name not in observed
        # The target's own region is still reported
        assert len(observed) == 1

    def test_unknown_target_observes_nothing(self, cluster, sleeps):
        region = first_region(cluster)
        restarted = ServerDescriptor(host="rs2", port=16020, start_code=99)

        outcome = MoveVerifier(make_context(cluster, sleeps, max_iterations=3)).verify_move(
            region, restarted
        )

        assert not outcome.converged
        assert outcome.diagnostics["observed"] == []
        assert cluster.move_calls == 3


class TestByteExactMatching:
    TARGET = ServerDescriptor(host="rs2", port=16020, start_code=2)
    REGION = RegionDescriptor(
        region_name=b"t1,,1.5c1d.", encoded_name="5c1d", table="t1"
    )

    def status_with(self, *names: bytes) -> ClusterStatus:
        return ClusterStatus(
            loads={
                self.TARGET: ServerLoad(
                    server=self.TARGET,
                    regions=tuple(RegionLoad(name=name) for name in names),
                )
            }
        )

    def test_similar_name_does_not_match(self, sleeps):
        admin = MagicMock()
        admin.get_cluster_status.return_value = self.status_with(
            b"t1,,1.5c1d", b"T1,,1.5C1D.", b"5c1d"
        )

        outcome = MoveVerifier(make_context(admin, sleeps, max_iterations=4)).verify_move(
            self.REGION, self.TARGET
        )

        assert not outcome.converged
        assert admin.move.call_count == 4
        admin.move.assert_called_with("5c1d", self.TARGET)

    def test_exact_match_stops_redelivery(self, sleeps):
        admin = MagicMock()
        admin.get_cluster_status.side_effect = [
            self.status_with(),
            self.status_with(b"t1,,1.5c1d"),
            self.status_with(b"t1,,1.5c1d."),
        ]

        outcome = MoveVerifier(make_context(admin, sleeps, max_iterations=10)).verify_move(
            self.REGION, self.TARGET
        )

        assert outcome.converged
        assert outcome.attempts == 3
        assert admin.move.call_count == 2
        assert len(sleeps) == 2

    def test_status_failure_propagates_without_redelivery(self, sleeps):
        admin = MagicMock()
        admin.get_cluster_status.side_effect = ConnectionError("rpc failed")

        with pytest.raises(ConnectionError):
            MoveVerifier(make_context(admin, sleeps)).verify_move(self.REGION, self.TARGET)

        admin.move.assert_not_called()
