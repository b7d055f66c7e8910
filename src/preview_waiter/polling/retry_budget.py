"""
Retry budget shared by every polling loop.

A budget turns a wall-clock timeout and a fixed poll interval into a bounded
number of attempts.
"""

import math

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ConfigurationError


def compute_iterations(max_wait_seconds: float, interval_millis: float) -> int:
    """
    Compute how many attempts fit into a wait budget.

    Args:
        max_wait_seconds: Maximum time to wait, in seconds
        interval_millis: Delay between attempts, in milliseconds

    Returns:
        floor(max_wait_seconds / interval), never negative
    """
    if interval_millis <= 0:
        raise ConfigurationError(
            f"Poll interval must be positive, got {interval_millis}ms",
            context={"interval_millis": interval_millis},
        )
    if max_wait_seconds <= 0:
        return 0
    return max(0, math.floor(max_wait_seconds / (interval_millis / 1000)))


class RetryBudget(BaseModel):
    """Immutable polling budget."""

    model_config = ConfigDict(frozen=True)

    max_wait_seconds: float = Field(..., description="Maximum wait in seconds")
    interval_millis: int = Field(..., gt=0, description="Poll interval in ms")

    @classmethod
    def from_seconds(
        cls, max_wait_seconds: float, interval_seconds: float
    ) -> "RetryBudget":
        """Build a budget from an interval expressed in seconds."""
        interval_millis = int(round(interval_seconds * 1000))
        if interval_millis <= 0:
            raise ConfigurationError(
                f"Poll interval must be at least 1ms, got {interval_seconds}s",
                context={"interval_seconds": interval_seconds},
            )
        return cls(max_wait_seconds=max_wait_seconds, interval_millis=interval_millis)

    @property
    def iterations(self) -> int:
        """Number of attempts this budget allows."""
        return compute_iterations(self.max_wait_seconds, self.interval_millis)

    @property
    def interval_seconds(self) -> float:
        return self.interval_millis / 1000
