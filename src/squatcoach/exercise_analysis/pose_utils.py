"""
pose_utils.py - Shared geometry helpers for squat analysis.

Landmarks are [x, y, z, visibility] lists in normalized image coordinates
(x grows to the right, y grows downwards).
"""
import numpy as np
from typing import Dict, List, Optional

from .base_analyzer import CameraFacing

_MIN_SEGMENT_LENGTH = 1e-6


# --- Math & Geometry Utilities ---
def calculate_angle(a: List[float], b: List[float], c: List[float]) -> float:
    """
    Calculate the angle at point 'b' between vectors 'ba' and 'bc'.

    Point ordering convention:
    - a: First point (e.g., hip for knee flexion)
    - b: Middle point (e.g., knee) - angle is calculated here
    - c: Last point (e.g., ankle)

    Args:
        a: First point coordinates [x, y, z, visibility]
        b: Middle point coordinates [x, y, z, visibility]
        c: Last point coordinates [x, y, z, visibility]
    Returns:
        Angle in degrees (0-180), or NaN if either segment has zero length
    """
    a = np.array(a[:3], dtype=float)
    b = np.array(b[:3], dtype=float)
    c = np.array(c[:3], dtype=float)
    ba = a - b
    bc = c - b
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < _MIN_SEGMENT_LENGTH or norm_bc < _MIN_SEGMENT_LENGTH:
        return np.nan
    cosine_angle = np.clip(np.dot(ba, bc) / (norm_ba * norm_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine_angle)))


def calculate_length(a: List[float], b: List[float]) -> float:
    """Calculate Euclidean distance between two points."""
    return float(np.linalg.norm(np.array(a[:2]) - np.array(b[:2])))


def calculate_clock_angle(origin: List[float], target: List[float]) -> float:
    """
    Angle of the segment origin -> target, clockwise from image-up.

    0 means target is straight above origin, 90 to the right, 270 to the left.
    Returns NaN when the two points coincide.
    """
    dx = target[0] - origin[0]
    dy = target[1] - origin[1]
    if np.hypot(dx, dy) < _MIN_SEGMENT_LENGTH:
        return np.nan
    return float(np.degrees(np.arctan2(dx, -dy)) % 360.0)


def trunk_lean_from_clock_angle(clock_angle: Optional[float], camera_facing: CameraFacing) -> Optional[float]:
    """
    Convert a hip->shoulder clock angle into a signed trunk lean.

    Positive is a forward lean, negative a backward lean. A left-facing subject
    leans forward into [270, 360) and backward into [0, 90]; a right-facing
    subject mirrors that. Angles pointing below the horizontal (90, 270) and
    non-side views have no meaningful lean and return None.
    """
    if clock_angle is None or np.isnan(clock_angle):
        return None
    c = clock_angle % 360.0
    if camera_facing == CameraFacing.LEFT:
        if c >= 270.0:
            return 360.0 - c
        if c <= 90.0:
            return -c
        return None
    if camera_facing == CameraFacing.RIGHT:
        if c <= 90.0:
            return c
        if c >= 270.0:
            return -(360.0 - c)
        return None
    return None


def get_side_visibility(landmarks: Dict[str, List[float]], side: str) -> float:
    side_landmarks = [f"{side}_shoulder", f"{side}_hip", f"{side}_knee", f"{side}_ankle"]
    visibilities = [landmarks[l][3] for l in side_landmarks if l in landmarks and len(landmarks[l]) > 3]
    return float(np.mean(visibilities)) if visibilities else 0.0


def select_tracked_side(landmarks: Dict[str, List[float]], camera_facing: CameraFacing) -> str:
    """Side whose landmarks drive the analysis: the facing side, else the more visible one."""
    if camera_facing == CameraFacing.LEFT:
        return "left"
    if camera_facing == CameraFacing.RIGHT:
        return "right"
    return "left" if get_side_visibility(landmarks, "left") >= get_side_visibility(landmarks, "right") else "right"


def calculate_torso_length(landmarks: Dict[str, List[float]], side: Optional[str] = None) -> Optional[float]:
    """
    Calculate torso length robustly:
    - If a side is given, return that side's shoulder-to-hip length.
    - If all four (left/right shoulder & hip) are present, return average of both sides.
    - If only left or only right side is present, return that side's length.
    - If nothing usable is available, return None.
    """
    sides = [side] if side else ["left", "right"]
    lengths = []
    for s in sides:
        if f"{s}_shoulder" in landmarks and f"{s}_hip" in landmarks:
            length = calculate_length(landmarks[f"{s}_shoulder"], landmarks[f"{s}_hip"])
            if length > _MIN_SEGMENT_LENGTH:
                lengths.append(length)
    if not lengths:
        return None
    return float(np.mean(lengths))
