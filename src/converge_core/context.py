"""
Verification context.

A ConvergenceContext bundles everything a verifier needs: the admin client
that issues commands, the source of authoritative status (usually the same
client), the retry budget and the sleep function. It is constructed once by
the caller and passed to each verifier; the package holds no global state.
"""

import time
from dataclasses import dataclass, field
from typing import Callable

from converge_core.budget import RetryBudget
from converge_core.poller import OperationOutcome, wait_until
from converge_core.protocols import ClusterAdminClient, ClusterStatusSource


@dataclass
class ConvergenceContext:
    """
    Shared dependencies for a verification run.

    Attributes:
        admin: Client used to issue commands and boolean state queries.
        budget: Retry budget applied to every wait.
        status_source: Where placement is observed. Defaults to admin; set it
            to e.g. a RestStatusClient to observe through another channel.
        sleep: Blocking sleep between attempts.

    Example:
        ctx = ConvergenceContext(admin=admin)
        SplitVerifier(ctx).split("t1", b"m")
    """

    admin: ClusterAdminClient
    budget: RetryBudget = field(default_factory=RetryBudget)
    status_source: ClusterStatusSource | None = None
    sleep: Callable[[float], None] = time.sleep

    @property
    def source(self) -> ClusterStatusSource:
        return self.status_source if self.status_source is not None else self.admin

    def wait_until(
        self,
        predicate: Callable[[], bool],
        *,
        tag: str,
        diagnostics: Callable[[], dict[str, object]] | None = None,
    ) -> OperationOutcome:
        """Run wait_until with this context's budget and sleep."""
        return wait_until(
            predicate,
            self.budget,
            tag=tag,
            diagnostics=diagnostics,
            sleep=self.sleep,
        )
