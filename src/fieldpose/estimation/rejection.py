"""Policies deciding when a run of rejected samples should reset an estimator.

A persistently rejected stream usually means the estimate itself is wrong
(for example the camera locked onto the wrong target earlier). Resetting lets
the next sample be accepted unconditionally.
"""

from __future__ import annotations

from typing import Protocol

from fieldpose.core.exceptions import EstimatorConfigError


class RejectionPolicy(Protocol):
    """Tracks consecutive rejections for a pose estimator."""

    def rejected(self) -> bool:
        """Record a rejected sample; return True if the estimator should reset."""
        ...

    def accepted(self) -> None:
        """Record a sample that agreed with an existing estimate."""
        ...

    def reset(self) -> None:
        """Clear any recorded rejections."""
        ...


class NeverReset:
    """Keep the estimate no matter how many samples are rejected."""

    def rejected(self) -> bool:
        return False

    def accepted(self) -> None:
        pass

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NeverReset()"


class ResetAfterRejections:
    """Ask for a reset once more than ``limit`` samples in a row are rejected.

    A single agreeing sample clears the run.
    """

    def __init__(self, limit: int) -> None:
        """Initialize with the tolerated run length.

        Args:
            limit: Consecutive rejections tolerated before a reset

        Raises:
            EstimatorConfigError: If limit is negative
        """
        if limit < 0:
            raise EstimatorConfigError(f"Rejection limit must be >= 0, got {limit}")
        self.limit = limit
        self._rejections = 0

    @property
    def rejections(self) -> int:
        """Current number of consecutive rejections."""
        return self._rejections

    def rejected(self) -> bool:
        self._rejections += 1
        return self._rejections > self.limit

    def accepted(self) -> None:
        self._rejections = 0

    def reset(self) -> None:
        self._rejections = 0

    def __repr__(self) -> str:
        return f"ResetAfterRejections(limit={self.limit})"
