import logging
import time
from collections import Counter
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel
from .base_analyzer import BaseExerciseAnalyzer, ExerciseState, PoseSnapshot, RepSummary, UserLevel
from .config_utils import get_metric_config, load_squat_config, resolve_level_values
from .depth_metric import DepthMetric
from .heel_rise_metric import HeelRiseMetric
from .hip_shoulder_sync_metric import HipShoulderSyncMetric
from .pose_utils import (calculate_angle, calculate_clock_angle, calculate_torso_length,
                         select_tracked_side, trunk_lean_from_clock_angle)
from .squat_metric_base import FaultRecord, RepContext, SquatMetricBase
from .squat_state_machine import PhaseTransition, SquatPhase, SquatStateMachine
from .tempo_metric import TempoMetric
from .trunk_lean_metric import TrunkLeanMetric

_SQUAT_CONFIG = load_squat_config()

# --- Logger Setup ---
logger = logging.getLogger("SquatAnalyzer")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class SquatAnalyzer(BaseExerciseAnalyzer):
    """
    Squat rep counter and form scorer.

    Owns the phase state machine and the five form metrics. Metrics run every
    frame while the squat is active, always in the same order; when a rep
    completes their faults are collected into a verdict and they are reset.
    """

    def __init__(self, user_level: UserLevel = UserLevel.BEGINNER,
                 config: Optional[Dict[str, Any]] = None,
                 clock: Optional[Callable[[], int]] = None):
        """
        Args:
            user_level: User's experience level, selects per-level thresholds
            config: Config dict with the layout of squat_config.json; the
                packaged file is used when None
            clock: Zero-argument callable returning milliseconds, read only
                for snapshots without a timestamp
        """
        super().__init__(user_level)
        self._config = config if config is not None else _SQUAT_CONFIG
        self._clock = clock or _monotonic_ms
        try:
            thresholds = resolve_level_values(self._config["phase_thresholds"], user_level)
        except KeyError as e:
            raise ValueError("No phase_thresholds in squat config") from e
        self._state_machine = SquatStateMachine(thresholds)

        self.depth = DepthMetric(get_metric_config(self._config, "depth", user_level))
        self.trunk_lean = TrunkLeanMetric(get_metric_config(self._config, "trunk_lean", user_level))
        self.heel_rise = HeelRiseMetric(get_metric_config(self._config, "heel_rise", user_level))
        self.tempo = TempoMetric(get_metric_config(self._config, "tempo", user_level))
        self.hip_shoulder_sync = HipShoulderSyncMetric(get_metric_config(self._config, "hip_shoulder_sync", user_level))
        self.metrics: List[SquatMetricBase] = [
            self.depth,
            self.trunk_lean,
            self.heel_rise,
            self.tempo,
            self.hip_shoulder_sync,
        ]

        self.rep_history: List[RepSummary] = []
        self._tracked_side = "left"

    @property
    def squat_state(self) -> SquatPhase:
        return self._state_machine.phase

    def get_exercise_name(self) -> str:
        return "squat"

    def get_phase_name(self) -> str:
        return self._state_machine.phase.value

    def get_required_landmarks(self) -> List[str]:
        parts = self._config.get("required_landmarks", ["hip", "knee", "ankle"])
        return [f"{self._tracked_side}_{part}" for part in parts]

    def _prepare_frame(self, snapshot: PoseSnapshot) -> None:
        self._tracked_side = select_tracked_side(snapshot.landmarks, snapshot.camera_facing)

    def estimate_scale_factor(self, snapshot: PoseSnapshot) -> Optional[float]:
        if snapshot.scale_factor is not None and snapshot.scale_factor > 0:
            return snapshot.scale_factor
        estimate = calculate_torso_length(snapshot.landmarks, self._tracked_side)
        if estimate is not None:
            return estimate
        # Degenerate torso this frame: keep the last good value.
        return self.distance_scale_factor

    def check_safety(self, snapshot: PoseSnapshot) -> Optional[str]:
        missing = self.get_missing_landmarks(snapshot.landmarks)
        if missing:
            logger.debug(f"Skipping frame, missing landmarks: {missing}")
            return get_message(FeedbackChannel.SYSTEM, "missing_landmarks")
        return None

    def _landmark(self, landmarks: Dict[str, List[float]], part: str) -> Optional[List[float]]:
        point = landmarks.get(f"{self._tracked_side}_{part}")
        # Same rule as get_missing_landmarks: no visibility entry means not visible.
        if point is None or len(point) < 4 or point[3] < self.level_config.min_landmark_visibility:
            return None
        return point

    def _build_context(self, snapshot: PoseSnapshot, phase: SquatPhase, timestamp_ms: int) -> RepContext:
        landmarks = snapshot.landmarks
        shoulder = self._landmark(landmarks, "shoulder")
        hip = self._landmark(landmarks, "hip")
        knee = self._landmark(landmarks, "knee")
        ankle = self._landmark(landmarks, "ankle")
        heel = self._landmark(landmarks, "heel")
        foot = self._landmark(landmarks, "foot_index")

        knee_angle = None
        if hip is not None and knee is not None and ankle is not None:
            knee_angle = calculate_angle(hip, knee, ankle)
        if knee_angle is not None and np.isnan(knee_angle):
            logger.debug("Degenerate knee geometry, knee angle unavailable")
            knee_angle = None

        clock_angle = None
        if shoulder is not None and hip is not None:
            clock_angle = calculate_clock_angle(hip, shoulder)
            if np.isnan(clock_angle):
                logger.debug("Degenerate trunk geometry, clock angle unavailable")
                clock_angle = None

        return RepContext(
            knee_angle=knee_angle,
            trunk_lean=trunk_lean_from_clock_angle(clock_angle, snapshot.camera_facing),
            clock_angle=clock_angle,
            heel_distance=(foot[1] - heel[1]) if (heel is not None and foot is not None) else None,
            scale_factor=self.distance_scale_factor,
            squat_state=phase,
            frame_timestamp=timestamp_ms,
            knee_y=knee[1] if knee is not None else None,
            hip_y=hip[1] if hip is not None else None,
            shoulder_y=shoulder[1] if shoulder is not None else None,
            result_issues=self.result_issues,
            camera_facing=snapshot.camera_facing,
        )

    def analyze(self, snapshot: PoseSnapshot) -> Union[ExerciseState, RepSummary]:
        timestamp_ms = snapshot.timestamp_ms if snapshot.timestamp_ms is not None else int(self._clock())

        ctx = self._build_context(snapshot, self._state_machine.phase, timestamp_ms)
        transition = self._state_machine.update(ctx.knee_angle)
        phase = self._state_machine.phase

        if transition is not None:
            logger.debug(f"Phase {transition.from_phase.value} -> {transition.to_phase.value} at {timestamp_ms}ms")
            if transition.from_phase == SquatPhase.STANDING and transition.to_phase == SquatPhase.DESCENDING:
                self.result_issues.clear_instructions()

        ctx = replace(ctx, squat_state=phase)

        if transition is not None and transition.is_rep_completion:
            return self._complete_rep(transition, ctx)

        if transition is not None:
            self._notify_transition(transition, timestamp_ms)

        if phase != SquatPhase.STANDING:
            for metric in self.metrics:
                metric.update(ctx)
            self._merge_metric_debug_data()

        self.debug_data['squatState'] = phase.value
        return self._build_state()

    def _notify_transition(self, transition: PhaseTransition, timestamp_ms: int) -> None:
        for metric in self.metrics:
            metric.on_state_transition(transition.from_phase, transition.to_phase, timestamp_ms)

    def _merge_metric_debug_data(self) -> None:
        for metric in self.metrics:
            self.debug_data.update(metric.debug_data)

    def _complete_rep(self, transition: PhaseTransition, ctx: RepContext) -> RepSummary:
        self.depth.check_rep_completion(transition.from_phase, ctx)
        self._notify_transition(transition, ctx.frame_timestamp)
        self.tempo.evaluate_rep(self.result_issues)

        faults: List[FaultRecord] = []
        for metric in self.metrics:
            faults.extend(metric.faults)
        correct_form = not any(f.affects_form for f in faults)

        fault_map: Dict[str, Dict[str, str]] = {}
        for fault in faults:
            fault_map.setdefault(fault.phase, {})[fault.type] = fault.message

        self.rep_count += 1
        self.correct_form = correct_form
        self._merge_metric_debug_data()
        telemetry = {}
        for metric in self.metrics:
            telemetry.update({k: str(v) for k, v in metric.debug_data.items()})
        summary = RepSummary(
            rep_number=self.rep_count,
            correct_form=correct_form,
            faults=fault_map,
            timestamp_ms=ctx.frame_timestamp,
            telemetry=telemetry
        )
        self.rep_history.append(summary)

        for metric in self.metrics:
            metric.reset()

        self.debug_data['squatState'] = SquatPhase.STANDING.value
        logger.info(f"Rep {self.rep_count} complete, correct form: {correct_form}, faults: {fault_map}")
        return summary

    def reset_session(self) -> None:
        """Start a fresh set: clears reps, history, phase, metrics and feedback."""
        self._state_machine.reset()
        for metric in self.metrics:
            metric.reset()
        self.rep_history.clear()
        self.rep_count = 0
        self.correct_form = True
        self.result_issues.clear()
        self.debug_data.clear()
        logger.info("Squat session reset.")

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Get performance metrics for the session."""
        if not self.rep_history:
            return {
                "total_reps": self.rep_count,
                "correct_reps": 0,
                "accuracy": 0.0,
                "common_faults": [],
                "max_trunk_lean": None
            }

        correct_flags = [1.0 if rep.correct_form else 0.0 for rep in self.rep_history]
        fault_types = [fault_type for rep in self.rep_history for by_type in rep.faults.values() for fault_type in by_type]
        common_faults = Counter(fault_types).most_common(3)
        leans = [float(rep.telemetry["maxTrunkLean"]) for rep in self.rep_history if "maxTrunkLean" in rep.telemetry]

        return {
            "total_reps": self.rep_count,
            "correct_reps": int(sum(correct_flags)),
            "accuracy": float(np.mean(correct_flags)),
            "common_faults": [fault_type for fault_type, _ in common_faults],
            "max_trunk_lean": float(np.max(leans)) if leans else None
        }
