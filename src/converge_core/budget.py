"""
Retry budget shared by every verifier.

A RetryBudget bounds how long a verification may wait: at most
max_iterations predicate evaluations with interval between them, so the
total wait never exceeds max_iterations x interval.

Example:
    budget = RetryBudget(max_iterations=50, interval=timedelta(milliseconds=200))
    budget.total_wait  # timedelta(seconds=10)
"""

from dataclasses import dataclass
from datetime import timedelta

from converge_core.config import ConvergenceSettings

DEFAULT_MAX_ITERATIONS = 200
DEFAULT_INTERVAL = timedelta(milliseconds=100)


@dataclass(frozen=True)
class RetryBudget:
    """
    Immutable polling budget.

    Attributes:
        max_iterations: Maximum predicate evaluations (must be positive)
        interval: Pause between consecutive evaluations (must not be negative)
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    interval: timedelta = DEFAULT_INTERVAL

    def __post_init__(self) -> None:
        if isinstance(self.max_iterations, bool) or not isinstance(
            self.max_iterations, int
        ):
            raise TypeError(
                f"max_iterations must be int, got {type(self.max_iterations).__name__}"
            )
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.interval < timedelta(0):
            raise ValueError(f"interval must not be negative, got {self.interval}")

    @property
    def interval_seconds(self) -> float:
        return self.interval.total_seconds()

    @property
    def total_wait(self) -> timedelta:
        """Upper bound on time spent sleeping during one verification."""
        return self.interval * self.max_iterations

    @classmethod
    def from_settings(cls, settings: ConvergenceSettings | None = None) -> "RetryBudget":
        """
        Build a budget from environment-driven settings.

        Args:
            settings: Settings to read. If None, loaded from the environment.
        """
        settings = settings or ConvergenceSettings()
        return cls(
            max_iterations=settings.max_iterations,
            interval=timedelta(milliseconds=settings.interval_ms),
        )
