"""
In-memory eventually-consistent cluster.

SimulatedCluster implements ClusterAdminClient without a real cluster, for
tests and for rehearsing verification code. It reproduces the behaviours the
verifiers have to cope with:

- Commands take effect only after propagation_delay further observations
  (every query method counts as one observation)
- Move commands can be dropped silently (drop_moves, refuse_moves_to)
- Splits can stall forever (stall_splits)
- A query can be made to fail with inject_failure()

Example:
    cluster = SimulatedCluster.with_servers(2, propagation_delay=3)
    cluster.create_table("t1")
    ctx = ConvergenceContext(admin=cluster, sleep=lambda _: None)
    SplitVerifier(ctx).split("t1", b"m")
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

from converge_core.errors import (
    AdminRpcError,
    TableNotDisabledError,
    TableNotEnabledError,
    TableNotFoundError,
)
from converge_core.types import (
    ClusterStatus,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    ServerLoad,
    TableName,
    make_region,
)

logger = logging.getLogger(__name__)


@dataclass
class _Region:
    descriptor: RegionDescriptor
    start_key: bytes
    end_key: bytes  # b"" means end of table

    def contains(self, key: bytes) -> bool:
        return self.start_key < key and (not self.end_key or key < self.end_key)


@dataclass
class _Table:
    name: TableName
    enabled: bool = True
    regions: list[_Region] = field(default_factory=list)


@dataclass
class _Pending:
    due: int
    description: str
    apply: Callable[[], None]


@dataclass
class SimulatedCluster:
    """
    In-memory ClusterAdminClient.

    Attributes:
        servers: Live region servers.
        propagation_delay: Observations before a command becomes visible.
        drop_moves: Number of upcoming move commands to drop silently.
        refuse_moves_to: Servers that never accept a moved region.
        stall_splits: Accept split commands but never apply them.
        balancer_running: Current balancer state.
    """

    servers: list[ServerDescriptor]
    propagation_delay: int = 0
    drop_moves: int = 0
    refuse_moves_to: set[ServerDescriptor] = field(default_factory=set)
    stall_splits: bool = False
    balancer_running: bool = True

    move_calls: int = field(default=0, init=False)
    split_calls: int = field(default=0, init=False)

    _tables: dict[TableName, _Table] = field(default_factory=dict, init=False)
    _assignment: dict[bytes, ServerDescriptor] = field(default_factory=dict, init=False)
    _pending: list[_Pending] = field(default_factory=list, init=False)
    _clock: int = field(default=0, init=False)
    _failure: Exception | None = field(default=None, init=False)
    _region_ids: itertools.count = field(
        default_factory=lambda: itertools.count(1700000000000), init=False
    )

    @classmethod
    def with_servers(cls, count: int, **kwargs) -> "SimulatedCluster":
        """Create a cluster of count servers named rs1..rsN."""
        servers = [
            ServerDescriptor(host=f"rs{i}", port=16020, start_code=1700000000000 + i)
            for i in range(1, count + 1)
        ]
        return cls(servers=servers, **kwargs)

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def create_table(self, table: TableName, split_keys: list[bytes] | None = None) -> None:
        """Create an enabled table immediately, assigning regions round-robin."""
        if table in self._tables:
            raise AdminRpcError("create_table", f"table {table} already exists")

        bounds = [b""] + sorted(split_keys or []) + [b""]
        created = _Table(name=table)
        servers = sorted(self.servers)
        for i, (start, end) in enumerate(zip(bounds, bounds[1:])):
            region = _Region(make_region(table, start, next(self._region_ids)), start, end)
            created.regions.append(region)
            self._assignment[region.descriptor.region_name] = servers[i % len(servers)]
        self._tables[table] = created

    def inject_failure(self, error: Exception) -> None:
        """Make the next observation raise error."""
        self._failure = error

    def server_of(self, region: RegionDescriptor) -> ServerDescriptor | None:
        """Where the region is currently hosted, without advancing the clock."""
        return self._assignment.get(region.region_name)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _observe(self) -> None:
        if self._failure is not None:
            error, self._failure = self._failure, None
            raise error

        self._clock += 1
        due = [p for p in self._pending if p.due <= self._clock]
        self._pending = [p for p in self._pending if p.due > self._clock]
        for change in due:
            logger.debug("Applying %s", change.description)
            change.apply()

    def _schedule(self, description: str, apply: Callable[[], None]) -> None:
        if self.propagation_delay <= 0:
            apply()
            return
        self._pending.append(
            _Pending(due=self._clock + self.propagation_delay, description=description, apply=apply)
        )

    def _table(self, table: TableName) -> _Table:
        try:
            return self._tables[table]
        except KeyError:
            raise TableNotFoundError(table) from None

    # -------------------------------------------------------------------------
    # ClusterStatusSource
    # -------------------------------------------------------------------------

    def table_exists(self, table: TableName) -> bool:
        self._observe()
        return table in self._tables

    def get_cluster_status(self) -> ClusterStatus:
        self._observe()
        hosted: dict[ServerDescriptor, list[RegionLoad]] = {s: [] for s in self.servers}
        for name, server in sorted(self._assignment.items()):
            if server in hosted:
                hosted[server].append(RegionLoad(name=name, stores=1))
        return ClusterStatus(
            loads={s: ServerLoad(server=s, regions=tuple(r)) for s, r in hosted.items()}
        )

    def get_table_regions(self, table: TableName) -> list[RegionDescriptor]:
        self._observe()
        return [region.descriptor for region in self._table(table).regions]

    # -------------------------------------------------------------------------
    # ClusterAdminClient
    # -------------------------------------------------------------------------

    def is_table_enabled(self, table: TableName) -> bool:
        self._observe()
        return self._table(table).enabled

    def is_table_disabled(self, table: TableName) -> bool:
        self._observe()
        return not self._table(table).enabled

    def enable_table(self, table: TableName) -> None:
        target = self._table(table)
        if target.enabled:
            raise TableNotDisabledError(table)
        self._schedule(f"enable {table}", lambda: setattr(target, "enabled", True))

    def disable_table(self, table: TableName) -> None:
        target = self._table(table)
        if not target.enabled:
            raise TableNotEnabledError(table)
        self._schedule(f"disable {table}", lambda: setattr(target, "enabled", False))

    def delete_table(self, table: TableName) -> None:
        target = self._table(table)
        if target.enabled:
            raise AdminRpcError("delete_table", f"table {table} is not disabled")

        def remove() -> None:
            for region in target.regions:
                self._assignment.pop(region.descriptor.region_name, None)
            self._tables.pop(table, None)

        self._schedule(f"delete {table}", remove)

    def split(self, table: TableName, split_point: bytes) -> None:
        target = self._table(table)
        self.split_calls += 1
        parent = next((r for r in target.regions if r.contains(split_point)), None)
        if parent is None or self.stall_splits:
            logger.debug("Split of %s at %r not applied", table, split_point)
            return

        def apply() -> None:
            if parent not in target.regions:
                return
            server = self._assignment.pop(parent.descriptor.region_name)
            daughters = [
                _Region(make_region(table, parent.start_key, next(self._region_ids)),
                        parent.start_key, split_point),
                _Region(make_region(table, split_point, next(self._region_ids)),
                        split_point, parent.end_key),
            ]
            index = target.regions.index(parent)
            target.regions[index:index + 1] = daughters
            for daughter in daughters:
                self._assignment[daughter.descriptor.region_name] = server

        self._schedule(f"split {table} at {split_point!r}", apply)

    def move(self, encoded_region_name: str, destination: ServerDescriptor) -> None:
        self.move_calls += 1
        region_name = next(
            (
                region.descriptor.region_name
                for t in self._tables.values()
                for region in t.regions
                if region.descriptor.encoded_name == encoded_region_name
            ),
            None,
        )
        if region_name is None:
            raise AdminRpcError("move", f"unknown region {encoded_region_name}")

        if self.drop_moves > 0:
            self.drop_moves -= 1
            logger.debug("Dropping move of %s", encoded_region_name)
            return
        if destination in self.refuse_moves_to or destination not in self.servers:
            logger.debug("%s refused region %s", destination, encoded_region_name)
            return

        def apply() -> None:
            if region_name in self._assignment:
                self._assignment[region_name] = destination

        self._schedule(f"move {encoded_region_name} to {destination}", apply)

    def set_balancer_running(self, running: bool, synchronous: bool = True) -> bool:
        previous = self.balancer_running
        self.balancer_running = running
        return previous
