"""
Tracking Update Output Schema.

Defines what the pipeline hands to the rendering layer for every raw fix:
either an accepted FilteredEstimate or an explicit "no update" value.

The rendering layer only needs the opaque session identifier and the
estimate; it never depends on filter or gate internals.
"""

from dataclasses import dataclass
from typing import Optional
from enum import IntEnum

from .fix import FilteredEstimate


class UpdateDecision(IntEnum):
    """Outcome of the update gate, naming the rule that matched."""

    REJECTED = 0          # Within minimum distance and not stale
    ACCEPTED_FIRST = 1    # No prior accepted estimate
    ACCEPTED_STALE = 2    # Maximum interval exceeded
    ACCEPTED_MOVED = 3    # Moved at least the minimum distance

    @property
    def accepted(self) -> bool:
        return self != UpdateDecision.REJECTED


@dataclass(frozen=True)
class TrackingUpdate:
    """
    Result of processing one raw fix.

    Attributes:
        session_id: Opaque identifier of the tracking session
        decision: Gate decision for this fix
        estimate: Accepted estimate, or None when there is nothing to render
        displacement_m: Distance from the previously accepted estimate
            (None when the gate did not need to measure it)
    """

    session_id: str
    decision: UpdateDecision
    estimate: Optional[FilteredEstimate]
    displacement_m: Optional[float] = None

    def __post_init__(self):
        """Validate that estimate presence matches the decision."""
        if self.decision.accepted and self.estimate is None:
            raise ValueError(f"Accepted update requires an estimate: {self.decision.name}")

        if not self.decision.accepted and self.estimate is not None:
            raise ValueError("Rejected update must not carry an estimate")

    @property
    def has_update(self) -> bool:
        """Check if consumers should re-render with this estimate."""
        return self.decision.accepted

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/debugging."""
        return {
            'session_id': self.session_id,
            'decision': self.decision.name,
            'estimate': self.estimate.to_dict() if self.estimate else None,
            'displacement_m': self.displacement_m,
        }


def create_no_update(
    session_id: str,
    displacement_m: Optional[float] = None
) -> TrackingUpdate:
    """
    Create the explicit "no update" result.

    Args:
        session_id: Tracking session ID
        displacement_m: Measured displacement that fell below the threshold

    Returns:
        TrackingUpdate with REJECTED decision and no estimate
    """
    return TrackingUpdate(
        session_id=session_id,
        decision=UpdateDecision.REJECTED,
        estimate=None,
        displacement_m=displacement_m,
    )
