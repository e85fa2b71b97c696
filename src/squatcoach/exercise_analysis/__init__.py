"""
Exercise analysis package for squat rep detection and form validation.
"""

from .base_analyzer import (BaseExerciseAnalyzer, CameraFacing, ExerciseState, PoseSnapshot,
                            RepSummary, UserLevel)
from .squat_state_machine import PhaseTransition, SquatPhase, SquatStateMachine
from .squat_metric_base import FaultRecord, RepContext, SquatMetricBase
from .hysteresis import HysteresisFilter
from .depth_metric import DepthMetric
from .trunk_lean_metric import TrunkLeanMetric
from .heel_rise_metric import HeelRiseMetric
from .tempo_metric import TempoMetric
from .hip_shoulder_sync_metric import HipShoulderSyncMetric
from .squat_analyzer import SquatAnalyzer

__all__ = [
    'BaseExerciseAnalyzer',
    'CameraFacing',
    'ExerciseState',
    'PoseSnapshot',
    'RepSummary',
    'UserLevel',
    'PhaseTransition',
    'SquatPhase',
    'SquatStateMachine',
    'FaultRecord',
    'RepContext',
    'SquatMetricBase',
    'HysteresisFilter',
    'DepthMetric',
    'TrunkLeanMetric',
    'HeelRiseMetric',
    'TempoMetric',
    'HipShoulderSyncMetric',
    'SquatAnalyzer'
]
