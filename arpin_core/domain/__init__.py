"""
Domain Module: Update decisions for AR pin placement.

Implements:
- Distance/time update gate with efficiency bookkeeping
- Filter + gate tracking pipeline (single entry point)
"""

from .update_gate import (
    GateState,
    UpdateGate,
    UpdateGateConfig,
    UpdateThresholds,
)
from .tracking_pipeline import (
    TrackingPipeline,
    TrackingPipelineConfig,
    create_default_pipeline,
)

__all__ = [
    'GateState',
    'UpdateGate',
    'UpdateGateConfig',
    'UpdateThresholds',
    'TrackingPipeline',
    'TrackingPipelineConfig',
    'create_default_pipeline',
]
