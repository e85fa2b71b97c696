from typing import Any, Dict, Optional

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel
from .squat_metric_base import RepContext, SquatMetricBase
from .squat_state_machine import SquatPhase


class DepthMetric(SquatMetricBase):
    """Squat depth from the knee angle and the hip height relative to the knee."""

    name = "Depth"
    channel = FeedbackChannel.DEPTH

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.min_hip_knee_ratio = float(self.config.get("min_hip_knee_ratio", -0.15))
        self.min_knee_angle: Optional[float] = None
        self.max_hip_knee_ratio: Optional[float] = None
        self._reached_bottom = False

    def _hip_knee_ratio(self, ctx: RepContext) -> Optional[float]:
        # Image y grows downwards: positive means hips below the knee.
        if ctx.hip_y is None or ctx.knee_y is None:
            return None
        return ctx.normalized(ctx.hip_y - ctx.knee_y)

    def update(self, ctx: RepContext) -> None:
        if ctx.knee_angle is not None:
            if self.min_knee_angle is None or ctx.knee_angle < self.min_knee_angle:
                self.min_knee_angle = ctx.knee_angle
        ratio = self._hip_knee_ratio(ctx)
        if ratio is not None and (self.max_hip_knee_ratio is None or ratio > self.max_hip_knee_ratio):
            self.max_hip_knee_ratio = ratio

        if ctx.squat_state == SquatPhase.DESCENDING:
            self.set_feedback(ctx, get_message(self.channel, "go_lower"))
        elif ctx.squat_state == SquatPhase.BOTTOM:
            if ratio is None or ratio >= self.min_hip_knee_ratio:
                self.set_feedback(ctx, get_message(self.channel, "good_depth"))
            else:
                self.set_feedback(ctx, get_message(self.channel, "sink_hips"))
        elif ctx.squat_state == SquatPhase.ASCENDING:
            self.set_feedback(ctx, get_message(self.channel, "drive_up"))

        if self.min_knee_angle is not None:
            self.debug_data["minKneeAngle"] = f"{self.min_knee_angle:.1f}"
        if self.max_hip_knee_ratio is not None:
            self.debug_data["hipKneeRatio"] = f"{self.max_hip_knee_ratio:.2f}"

    def on_state_transition(self, from_phase: SquatPhase, to_phase: SquatPhase, timestamp_ms: int) -> None:
        if to_phase == SquatPhase.BOTTOM:
            self._reached_bottom = True

    def check_rep_completion(self, previous_phase: SquatPhase, ctx: RepContext) -> None:
        """Judge the finished rep's depth; called once on the frame it completes."""
        if previous_phase == SquatPhase.DESCENDING or not self._reached_bottom:
            self.log_fault(SquatPhase.DESCENDING, get_message(self.channel, "fault_shallow"))
            self.issue_instruction_once(ctx.result_issues, "depth", get_message(self.channel, "coach_depth"))
            return
        if self.max_hip_knee_ratio is not None and self.max_hip_knee_ratio < self.min_hip_knee_ratio:
            self.log_fault(SquatPhase.BOTTOM, get_message(self.channel, "fault_hips_high"))
            self.issue_instruction_once(ctx.result_issues, "depth", get_message(self.channel, "coach_depth"))

    def _reset_state(self) -> None:
        self.min_knee_angle = None
        self.max_hip_knee_ratio = None
        self._reached_bottom = False
