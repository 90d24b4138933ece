"""
Protocol Module: Value types exchanged with the location source and
the rendering layer.

- RawFix: input from the location source
- FilteredEstimate: output of the position filter
- TrackingUpdate: output of the pipeline (accepted estimate or no update)
"""

from .fix import (
    RawFix,
    FilteredEstimate,
)
from .tracking_update import (
    TrackingUpdate,
    UpdateDecision,
    create_no_update,
)

__all__ = [
    'RawFix',
    'FilteredEstimate',
    'TrackingUpdate',
    'UpdateDecision',
    'create_no_update',
]
