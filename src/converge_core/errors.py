"""
Exception classes for convergence verification.

This module defines the failures a verification run can surface:
- ConvergenceTimeoutError: retry budget exhausted without convergence
- AdminRpcError: an admin-client call failed; aborts the poll immediately
- AlreadyInTargetStateError: a state change was requested that already holds
- TableNotFoundError / InvalidTableError: table preconditions not met

Per project patterns:
- Inherit from a common base for catch-all handling
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from converge_core.poller import TimedOut


class ConvergenceError(Exception):
    """Base class for all convergence verification errors."""


class ConvergenceTimeoutError(ConvergenceError):
    """
    Raised when a verification exhausts its retry budget.

    Attributes:
        outcome: The TimedOut outcome, including last observed diagnostics
    """

    def __init__(self, outcome: "TimedOut") -> None:
        self.outcome = outcome
        super().__init__(
            f"{outcome.tag} did not converge after {outcome.attempts} attempts "
            f"({outcome.elapsed_seconds:.1f}s): {outcome.diagnostics}"
        )

    @property
    def diagnostics(self) -> dict[str, object]:
        return self.outcome.diagnostics


class AdminRpcError(ConvergenceError):
    """
    Raised when a call to the cluster admin client fails.

    Never treated as "not yet converged": it aborts the running poll.

    Attributes:
        operation: Admin operation that failed (e.g., "get_cluster_status")
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class TableNotFoundError(ConvergenceError):
    """Raised when an operation targets a table that does not exist."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table {table} does not exist")


class InvalidTableError(ConvergenceError):
    """Raised when a table fails the exists-and-enabled precondition."""

    def __init__(self, table: str, reason: str) -> None:
        self.table = table
        self.reason = reason
        super().__init__(f"Invalid table {table}: {reason}")


class AlreadyInTargetStateError(ConvergenceError):
    """
    Raised by an admin client when the requested state already holds.

    Teardown logic treats this as success.

    Attributes:
        table: Table the request targeted
        state: The state it was already in (e.g., "disabled")
    """

    def __init__(self, table: str, state: str) -> None:
        self.table = table
        self.state = state
        super().__init__(f"Table {table} is already {state}")


class TableNotEnabledError(AlreadyInTargetStateError):
    """Raised when disabling a table that is not enabled."""

    def __init__(self, table: str) -> None:
        super().__init__(table, "disabled")


class TableNotDisabledError(AlreadyInTargetStateError):
    """Raised when enabling a table that is not disabled."""

    def __init__(self, table: str) -> None:
        super().__init__(table, "enabled")
