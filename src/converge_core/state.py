"""
Table state convergence and balancer control.

TableStateVerifier polls a single boolean query until a table reaches the
enabled, disabled or deleted state. These commands are assumed to be
delivered once, so nothing is re-issued while waiting.

BalancerSwitch toggles the cluster-wide balancer. The balancer must be off
while regions are placed by hand, and whatever was running before must be
restored afterwards so one run does not leak configuration into the next.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from converge_core.context import ConvergenceContext
from converge_core.errors import AlreadyInTargetStateError, InvalidTableError
from converge_core.poller import OperationOutcome
from converge_core.types import TableName

logger = logging.getLogger(__name__)


@dataclass
class TableStateVerifier:
    """
    Waits for table state changes to become visible.

    Attributes:
        context: Shared verification context.
    """

    context: ConvergenceContext

    def _wait_for_state(
        self,
        table: TableName,
        state: str,
        query: Callable[[TableName], bool],
        expected: bool,
    ) -> OperationOutcome:
        observed: dict[str, bool | None] = {"value": None}

        def in_state() -> bool:
            observed["value"] = query(table)
            return observed["value"] == expected

        return self.context.wait_until(
            in_state,
            tag=f"verify_{state}:{table}",
            diagnostics=lambda: {
                "table": table,
                "expected": expected,
                "observed": observed["value"],
            },
        )

    def verify_enabled(self, table: TableName) -> OperationOutcome:
        """Wait until is_table_enabled(table) holds."""
        return self._wait_for_state(table, "enabled", self.context.admin.is_table_enabled, True)

    def verify_disabled(self, table: TableName) -> OperationOutcome:
        """Wait until is_table_disabled(table) holds."""
        return self._wait_for_state(
            table, "disabled", self.context.admin.is_table_disabled, True
        )

    def verify_deleted(self, table: TableName) -> OperationOutcome:
        """Wait until the table no longer exists."""
        return self._wait_for_state(table, "deleted", self.context.admin.table_exists, False)

    def validate_table(self, table: TableName) -> None:
        """
        Check that the table exists and is enabled.

        Raises:
            InvalidTableError: If the table is missing or not enabled.
        """
        admin = self.context.admin
        if not admin.table_exists(table):
            raise InvalidTableError(table, "table does not exist")
        if not admin.is_table_enabled(table):
            raise InvalidTableError(table, "table is not enabled")

    def drop_table(self, table: TableName) -> None:
        """
        Disable and delete the table if it exists, then wait for deletion.

        Safe for teardown: a missing table is a no-op, and a table that is
        already disabled is deleted directly.

        Raises:
            ConvergenceTimeoutError: If the table still exists after the budget.
        """
        admin = self.context.admin
        if not admin.table_exists(table):
            return

        try:
            admin.disable_table(table)
        except AlreadyInTargetStateError:
            logger.debug("Table %s already disabled", table)
        self.verify_disabled(table).raise_for_timeout()

        admin.delete_table(table)
        self.verify_deleted(table).raise_for_timeout()
        logger.info("Dropped table %s", table)


@dataclass
class BalancerSwitch:
    """
    Idempotent balancer toggle.

    Attributes:
        context: Shared verification context.

    Example:
        with BalancerSwitch(ctx).paused():
            MoveVerifier(ctx).move(region, server)
    """

    context: ConvergenceContext

    def toggle_balancer(self, enable: bool) -> bool:
        """
        Set the balancer state synchronously.

        Calling twice with the same value leaves cluster state unchanged; the
        second call returns that value as the previous state.

        Returns:
            The balancer state before this call.
        """
        previous = self.context.admin.set_balancer_running(enable, True)
        logger.info("Balancer %s (was %s)", "on" if enable else "off", "on" if previous else "off")
        return previous

    @contextmanager
    def paused(self) -> Iterator[bool]:
        """
        Turn the balancer off for the block, then restore the previous state.

        Yields:
            The balancer state before it was paused.
        """
        previous = self.toggle_balancer(False)
        try:
            yield previous
        finally:
            if previous:
                self.toggle_balancer(True)
