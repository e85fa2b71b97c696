"""squatcoach: real-time squat rep counting and form scoring.

Consumes one smoothed, orientation-tagged pose snapshot per frame and reports
the squat phase, live feedback, per-rep coaching instructions and a
correct-form verdict for every completed repetition.
"""

from .exercise_analysis import SquatAnalyzer, PoseSnapshot, CameraFacing, UserLevel

__all__ = [
    "SquatAnalyzer",
    "PoseSnapshot",
    "CameraFacing",
    "UserLevel",
]

__version__ = "0.1.0"
