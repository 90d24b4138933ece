"""
AR Pin Core Package.

Smooths a noisy stream of geographic fixes and decides when spatially
anchored content should be re-rendered.

Package structure:
- proto: RawFix, FilteredEstimate, TrackingUpdate
- localization: Position filter, accuracy noise model, haversine distance
- domain: Update gate and tracking pipeline
- metrics: Per-session diagnostics, counters, histograms
"""

__version__ = "0.1.0"

from .proto import RawFix, FilteredEstimate, TrackingUpdate, UpdateDecision
from .domain import TrackingPipeline, TrackingPipelineConfig, create_default_pipeline

__all__ = [
    'RawFix',
    'FilteredEstimate',
    'TrackingUpdate',
    'UpdateDecision',
    'TrackingPipeline',
    'TrackingPipelineConfig',
    'create_default_pipeline',
]
