"""
Move verification with at-least-once redelivery.

The move command has no acknowledgement and the cluster may drop it without
notice. MoveVerifier therefore re-issues the move every time the target
server's load report does not yet contain the region, bounded by the same
retry budget as the observation loop.
"""

import logging
from dataclasses import dataclass

from converge_core.context import ConvergenceContext
from converge_core.poller import Converged, OperationOutcome
from converge_core.types import RegionDescriptor, ServerDescriptor, printable

logger = logging.getLogger(__name__)


@dataclass
class MoveVerifier:
    """
    Drives a region relocation to completion.

    Attributes:
        context: Shared verification context.
    """

    context: ConvergenceContext

    def verify_move(
        self, region: RegionDescriptor, target_server: ServerDescriptor
    ) -> OperationOutcome:
        """
        Wait until target_server reports hosting region, redelivering the move.

        A match requires the exact region name bytes; a region whose encoded
        name or printable form merely looks the same does not count. If the
        target is missing from the status (e.g. restarted with a new start
        code) it is treated as hosting nothing.

        Args:
            region: Region being moved.
            target_server: Server it should end up on.

        Returns:
            Converged, or TimedOut with diagnostics
            {"region", "target", "observed"} where observed lists every region
            name the target last reported.
        """
        source = self.context.source
        admin = self.context.admin
        observed: dict[str, frozenset[bytes]] = {"names": frozenset()}

        def hosted_on_target() -> bool:
            load = source.get_cluster_status().load_for(target_server)
            observed["names"] = load.region_names if load is not None else frozenset()
            if region.region_name in observed["names"]:
                return True

            logger.debug("Redelivering move of %s to %s", region.encoded_name, target_server)
            admin.move(region.encoded_name, target_server)
            return False

        def diagnostics() -> dict[str, object]:
            return {
                "region": region.name,
                "target": str(target_server),
                "observed": sorted(printable(name) for name in observed["names"]),
            }

        return self.context.wait_until(
            hosted_on_target,
            tag=f"verify_move:{region.encoded_name}",
            diagnostics=diagnostics,
        )

    def move(self, region: RegionDescriptor, target_server: ServerDescriptor) -> Converged:
        """
        Move region to target_server and wait until it is hosted there.

        Raises:
            ConvergenceTimeoutError: If the region never shows up on the target.
        """
        logger.info("Moving %s to %s", region.name, target_server)
        self.context.admin.move(region.encoded_name, target_server)
        return self.verify_move(region, target_server).raise_for_timeout()
