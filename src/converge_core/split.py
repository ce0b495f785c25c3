"""
Split verification.

After a split is requested, the region count the catalog or a client cache
reports cannot be trusted until every server has picked up the daughters.
SplitVerifier counts the table's regions as reported by the servers
themselves and waits for the expected total.
"""

import logging
from dataclasses import dataclass

from converge_core.context import ConvergenceContext
from converge_core.placement import PlacementObserver
from converge_core.poller import Converged, OperationOutcome
from converge_core.types import PlacementSnapshot, TableName, printable

logger = logging.getLogger(__name__)


@dataclass
class SplitVerifier:
    """
    Drives a split to observable completion.

    Attributes:
        context: Shared verification context.
    """

    context: ConvergenceContext

    def verify_split(
        self, table: TableName, expected_region_count_after: int
    ) -> OperationOutcome:
        """
        Wait until servers report exactly the expected number of table regions.

        Args:
            table: Table that was split.
            expected_region_count_after: Pre-split region count plus one.

        Returns:
            Converged, or TimedOut with diagnostics
            {"table", "expected", "actual", "placement"}.
        """
        observer = PlacementObserver(source=self.context.source)
        last: dict[str, PlacementSnapshot] = {}

        def region_count_matches() -> bool:
            last["snapshot"] = observer.actual_placement(table)
            return last["snapshot"].region_count() == expected_region_count_after

        def diagnostics() -> dict[str, object]:
            snapshot = last.get("snapshot")
            return {
                "table": table,
                "expected": expected_region_count_after,
                "actual": snapshot.region_count() if snapshot else 0,
                "placement": snapshot.describe() if snapshot else {},
            }

        return self.context.wait_until(
            region_count_matches,
            tag=f"verify_split:{table}",
            diagnostics=diagnostics,
        )

    def split(self, table: TableName, split_point: bytes) -> Converged:
        """
        Split the table at split_point and wait for one extra region.

        Args:
            table: Table to split.
            split_point: Row key the region is divided at.

        Returns:
            Converged outcome.

        Raises:
            ConvergenceTimeoutError: If the split does not propagate in budget.
        """
        region_count = PlacementObserver(source=self.context.source).region_count(table)
        logger.info(
            "Splitting %s at %s (%d region(s) before split)",
            table,
            printable(split_point),
            region_count,
        )
        self.context.admin.split(table, split_point)
        return self.verify_split(table, region_count + 1).raise_for_timeout()
