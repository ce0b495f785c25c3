"""
Ground-truth region placement.

Client-side region location caches go stale right after a split or move.
PlacementObserver instead cross-references each server's own load report
against the table's region identities, comparing region names byte for byte.
Every call fetches fresh state; nothing is cached between calls.
"""

from dataclasses import dataclass

from converge_core.protocols import ClusterStatusSource
from converge_core.types import (
    PlacementSnapshot,
    RegionDescriptor,
    RegionLoad,
    ServerDescriptor,
    TableName,
)


@dataclass
class PlacementObserver:
    """
    Computes where a table's regions actually live.

    Attributes:
        source: Authoritative status source queried on every call.

    Example:
        observer = PlacementObserver(source=admin)
        snapshot = observer.actual_placement("t1")
        for server in snapshot.servers():
            print(server, [r.name for r in snapshot.regions_on(server)])
    """

    source: ClusterStatusSource

    def actual_placement(self, table: TableName) -> PlacementSnapshot:
        """
        Build a placement snapshot restricted to the table's regions.

        Regions a server reports that do not belong to the table (or that the
        catalog no longer lists, such as a split parent) are ignored.

        Args:
            table: Table to restrict the snapshot to.

        Returns:
            PlacementSnapshot covering every live server, possibly with an
            empty region set.
        """
        status = self.source.get_cluster_status()
        known = {region.region_name: region for region in self.source.get_table_regions(table)}

        placements: dict[ServerDescriptor, frozenset[RegionDescriptor]] = {}
        for server in status.servers():
            load = status.load_for(server)
            placements[server] = frozenset(
                known[name] for name in load.region_names if name in known
            )

        return PlacementSnapshot(table=table, placements=placements)

    def region_count(self, table: TableName) -> int:
        """Number of regions the catalog lists for the table."""
        return len(self.source.get_table_regions(table))

    def servers(self) -> list[ServerDescriptor]:
        """Live servers in deterministic order."""
        return self.source.get_cluster_status().servers()

    def regions_on(
        self, server: ServerDescriptor, table: TableName
    ) -> list[RegionDescriptor]:
        """Regions of the table that the server currently reports, sorted by name."""
        snapshot = self.actual_placement(table)
        return sorted(snapshot.regions_on(server), key=lambda r: r.region_name)

    def region_load(
        self, region: RegionDescriptor, server: ServerDescriptor
    ) -> RegionLoad | None:
        """Load entry the server reports for the region, if it hosts it."""
        load = self.source.get_cluster_status().load_for(server)
        if load is None:
            return None
        return load.get(region.region_name)
