"""
Bounded polling driver.

wait_until() evaluates a predicate until it returns True or the retry
budget is exhausted, and reports the result as an OperationOutcome:

- Converged: the predicate held on some evaluation
- TimedOut: it never held; carries the caller's last observed state

Only a falsy return means "not yet". An exception raised by the predicate
(for example AdminRpcError) propagates at once and aborts the poll.

Example:
    observed = {}

    def table_gone() -> bool:
        observed["exists"] = admin.table_exists("t1")
        return not observed["exists"]

    outcome = wait_until(
        table_gone,
        RetryBudget(),
        tag="verify_deleted:t1",
        diagnostics=lambda: dict(observed),
    )
    outcome.raise_for_timeout()
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Union

from converge_core.budget import RetryBudget
from converge_core.errors import ConvergenceTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Converged:
    """
    The predicate held.

    Attributes:
        tag: Diagnostic tag of the call site
        attempts: Number of predicate evaluations, including the successful one
        elapsed_seconds: Wall time spent in wait_until
    """

    tag: str
    attempts: int
    elapsed_seconds: float

    converged = True

    def raise_for_timeout(self) -> "Converged":
        return self


@dataclass(frozen=True)
class TimedOut:
    """
    The budget ran out before the predicate held.

    Attributes:
        tag: Diagnostic tag of the call site
        attempts: Number of predicate evaluations (equals max_iterations)
        elapsed_seconds: Wall time spent in wait_until
        diagnostics: Last observed state, e.g. {"expected": 2, "actual": 1}
    """

    tag: str
    attempts: int
    elapsed_seconds: float
    diagnostics: dict[str, object] = field(default_factory=dict)

    converged = False

    def raise_for_timeout(self) -> Converged:
        """
        Raise ConvergenceTimeoutError carrying this outcome.

        Raises:
            ConvergenceTimeoutError: Always.
        """
        raise ConvergenceTimeoutError(self)


OperationOutcome = Union[Converged, TimedOut]


def wait_until(
    predicate: Callable[[], bool],
    budget: RetryBudget,
    *,
    tag: str,
    diagnostics: Callable[[], dict[str, object]] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> OperationOutcome:
    """
    Poll predicate until it holds or the budget is exhausted.

    The predicate is evaluated at most budget.max_iterations times. After
    every failed evaluation except the last, the calling thread sleeps for
    budget.interval. Convergence on the k-th evaluation therefore costs
    k - 1 sleeps.

    Args:
        predicate: Zero-argument check. Must not mutate cluster state, except
            for deliberate command redelivery (see MoveVerifier).
        budget: Iteration count and interval.
        tag: Label identifying the call site in logs and outcomes.
        diagnostics: Returns the last observed state; called once on timeout.
        sleep: Blocking sleep, injectable for tests.

    Returns:
        Converged or TimedOut.

    Raises:
        Exception: Whatever the predicate raises, unchanged.
    """
    started = time.monotonic()

    for attempt in range(1, budget.max_iterations + 1):
        if predicate():
            elapsed = time.monotonic() - started
            logger.info("%s converged after %d attempt(s) in %.2fs", tag, attempt, elapsed)
            return Converged(tag=tag, attempts=attempt, elapsed_seconds=elapsed)

        logger.debug("%s not converged (attempt %d/%d)", tag, attempt, budget.max_iterations)
        if attempt < budget.max_iterations:
            sleep(budget.interval_seconds)

    elapsed = time.monotonic() - started
    state = diagnostics() if diagnostics is not None else {}
    logger.warning(
        "%s timed out after %d attempts in %.2fs: %s",
        tag,
        budget.max_iterations,
        elapsed,
        state,
    )
    return TimedOut(
        tag=tag,
        attempts=budget.max_iterations,
        elapsed_seconds=elapsed,
        diagnostics=state,
    )
