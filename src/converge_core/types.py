"""
Shared data types for convergence verification.

This module defines the point-in-time views of cluster state that verifiers
work with. These are internal types built fresh from each admin-client
response and discarded after a single poll iteration - not API models.

Identity rules:
- A region is identified by the exact bytes of its region name. The encoded
  name is carried for issuing commands but never used for comparison.
- A server is identified by its (host, port, start_code) triple, so a
  restarted server on the same address is a different server.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Mapping

TableName = str
"""Name of a table in the cluster."""


def printable(name: bytes) -> str:
    """Render a raw region name for logs and diagnostics."""
    return name.decode("utf-8", errors="backslashreplace")


@dataclass(frozen=True)
class RegionDescriptor:
    """
    Identity of a single region.

    Attributes:
        region_name: Full region name bytes, e.g. b"t1,m,1700000000000.5c1d...".
        encoded_name: Short derived identifier used by the move command.
        table: Name of the table that owns the region.
    """

    region_name: bytes
    encoded_name: str = field(compare=False)
    table: TableName = field(compare=False)

    @property
    def name(self) -> str:
        """Region name decoded for display."""
        return printable(self.region_name)


def make_region(table: TableName, start_key: bytes, region_id: int) -> RegionDescriptor:
    """
    Build a region descriptor from its raw parts.

    The name is b"<table>,<start key>,<id>.<encoded>." where the encoded name
    is the MD5 hex digest of everything before the first dot.
    """
    base = table.encode("utf-8") + b"," + start_key + b"," + str(region_id).encode("ascii")
    encoded = hashlib.md5(base).hexdigest()
    return RegionDescriptor(
        region_name=base + b"." + encoded.encode("ascii") + b".",
        encoded_name=encoded,
        table=table,
    )


@dataclass(frozen=True, order=True)
class ServerDescriptor:
    """
    Identity of a region server.

    Ordered by host, then port, then start code so enumeration over servers
    is deterministic.

    Attributes:
        host: Hostname the server registered with.
        port: RPC port.
        start_code: Start timestamp distinguishing restarts on one address.
    """

    host: str
    port: int
    start_code: int

    @property
    def server_name(self) -> str:
        """Server name in "host,port,start_code" form, as move expects."""
        return f"{self.host},{self.port},{self.start_code}"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.server_name


@dataclass(frozen=True)
class RegionLoad:
    """
    A server's self-reported load for one region it hosts.

    Attributes:
        name: Region name bytes as reported by the server.
        stores: Number of column family stores.
        storefiles: Number of store files on disk.
        memstore_size_mb: Memstore size in megabytes.
        read_requests: Read request count since the region opened.
        write_requests: Write request count since the region opened.
    """

    name: bytes
    stores: int = 0
    storefiles: int = 0
    memstore_size_mb: int = 0
    read_requests: int = 0
    write_requests: int = 0


@dataclass(frozen=True)
class ServerLoad:
    """Load report of a single server: every region it says it hosts."""

    server: ServerDescriptor
    regions: tuple[RegionLoad, ...] = ()

    @property
    def region_names(self) -> frozenset[bytes]:
        return frozenset(load.name for load in self.regions)

    def get(self, region_name: bytes) -> RegionLoad | None:
        """Return the load entry whose name matches region_name byte for byte."""
        return next((load for load in self.regions if load.name == region_name), None)


@dataclass(frozen=True)
class ClusterStatus:
    """
    Point-in-time cluster status: live servers and their load reports.

    Attributes:
        loads: Mapping of live server to its reported load.
    """

    loads: Mapping[ServerDescriptor, ServerLoad] = field(default_factory=dict)

    def servers(self) -> list[ServerDescriptor]:
        """Live servers in their total order."""
        return sorted(self.loads)

    def load_for(self, server: ServerDescriptor) -> ServerLoad | None:
        """Load of the given server, or None if it is not live in this status."""
        return self.loads.get(server)


@dataclass(frozen=True)
class PlacementSnapshot:
    """
    Which regions of a table each server reports hosting, at one instant.

    Built from direct server load reports rather than any client-side
    location cache. Never reused across poll iterations.

    Attributes:
        table: Table the snapshot is restricted to.
        placements: Mapping of server to the table regions it reports.
    """

    table: TableName
    placements: Mapping[ServerDescriptor, frozenset[RegionDescriptor]] = field(
        default_factory=dict
    )

    def servers(self) -> list[ServerDescriptor]:
        return sorted(self.placements)

    def regions_on(self, server: ServerDescriptor) -> frozenset[RegionDescriptor]:
        return self.placements.get(server, frozenset())

    def region_count(self) -> int:
        """Total regions of the table reported across all servers."""
        return sum(len(regions) for regions in self.placements.values())

    def locate(self, region: RegionDescriptor) -> list[ServerDescriptor]:
        """Servers reporting the region; more than one while a move is in flight."""
        return [
            server
            for server in self.servers()
            if region in self.placements[server]
        ]

    def describe(self) -> dict[str, list[str]]:
        """Placement rendered with printable names, for diagnostics."""
        return {
            str(server): sorted(region.name for region in self.placements[server])
            for server in self.servers()
        }
