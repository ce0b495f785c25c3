"""
Admin client protocol definitions.

The core never talks to a cluster directly. It consumes two capability
interfaces, implemented outside this package:

- ClusterStatusSource: read-only queries (cluster status, table regions,
  table existence). Enough for placement observation.
- ClusterAdminClient: the status queries plus the administrative commands
  whose effects the verifiers wait for.

Commands are fire-and-forget. In particular, move may be silently dropped by
the cluster, which is why MoveVerifier redelivers it.

Implementations raise AdminRpcError (or a subclass) on transport failure,
and AlreadyInTargetStateError when asked to enable an enabled table or
disable a disabled one.
"""

from typing import Protocol, runtime_checkable

from converge_core.types import (
    ClusterStatus,
    RegionDescriptor,
    ServerDescriptor,
    TableName,
)


@runtime_checkable
class ClusterStatusSource(Protocol):
    """Read-only view of authoritative cluster state."""

    def table_exists(self, table: TableName) -> bool:
        """Return True if the table exists."""
        ...

    def get_cluster_status(self) -> ClusterStatus:
        """
        Return a fresh cluster status.

        Returns:
            ClusterStatus with every live server and the regions it reports.
        """
        ...

    def get_table_regions(self, table: TableName) -> list[RegionDescriptor]:
        """
        Return the table's regions from the catalog, ordered by start key.

        Raises:
            TableNotFoundError: If the table does not exist.
        """
        ...


@runtime_checkable
class ClusterAdminClient(ClusterStatusSource, Protocol):
    """Status queries plus administrative commands."""

    def is_table_enabled(self, table: TableName) -> bool: ...

    def is_table_disabled(self, table: TableName) -> bool: ...

    def enable_table(self, table: TableName) -> None: ...

    def disable_table(self, table: TableName) -> None: ...

    def delete_table(self, table: TableName) -> None: ...

    def split(self, table: TableName, split_point: bytes) -> None:
        """Request a split of the table's region containing split_point."""
        ...

    def move(self, encoded_region_name: str, destination: ServerDescriptor) -> None:
        """Request relocation of a region. May be dropped without notice."""
        ...

    def set_balancer_running(self, running: bool, synchronous: bool = True) -> bool:
        """
        Switch the balancer on or off.

        Returns:
            The balancer state before this call.
        """
        ...
