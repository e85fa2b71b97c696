from typing import Any, Dict, Optional

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel
from .hysteresis import HysteresisFilter
from .pose_utils import trunk_lean_from_clock_angle
from .squat_metric_base import RepContext, SquatMetricBase


class TrunkLeanMetric(SquatMetricBase):
    """
    Forward/backward trunk lean from the hip->shoulder segment.

    Forward and backward conditions are debounced by separate filters, so a
    swing from one to the other confirms without a neutral stretch between.
    """

    name = "TrunkLean"
    channel = FeedbackChannel.BACK
    # Distinct fault types so both directions can be recorded in one phase.
    FORWARD_FAULT = "Back"
    BACKWARD_FAULT = "BackBackward"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.forward_lean_max = float(self.config.get("forward_lean_max", 40.0))
        self.backward_lean_max = float(self.config.get("backward_lean_max", 5.0))
        frames = int(self.config.get("hysteresis_frames", 3))
        self._forward_filter = HysteresisFilter(frames)
        self._backward_filter = HysteresisFilter(frames)
        self.max_trunk_lean: Optional[float] = None

    @staticmethod
    def lean_from_context(ctx: RepContext) -> Optional[float]:
        if ctx.clock_angle is not None:
            return trunk_lean_from_clock_angle(ctx.clock_angle, ctx.camera_facing)
        return ctx.trunk_lean

    def update(self, ctx: RepContext) -> None:
        lean = self.lean_from_context(ctx)
        if lean is None:
            # Non-side view or a clock angle outside the standing range.
            return

        if self.max_trunk_lean is None or lean > self.max_trunk_lean:
            self.max_trunk_lean = lean

        leaning_forward = self._forward_filter.update(lean > self.forward_lean_max)
        leaning_backward = self._backward_filter.update(lean < -self.backward_lean_max)

        # Both directions share the "lean" instruction flag: the one Back chip
        # coaches whichever lean was confirmed first this rep.
        if leaning_forward:
            self.log_fault(ctx.squat_state, get_message(self.channel, "fault_forward"), fault_type=self.FORWARD_FAULT)
            self.issue_instruction_once(ctx.result_issues, "lean", get_message(self.channel, "coach_forward"))
            self.set_feedback(ctx, get_message(self.channel, "too_forward"))
        elif leaning_backward:
            self.log_fault(ctx.squat_state, get_message(self.channel, "fault_backward"), fault_type=self.BACKWARD_FAULT)
            self.issue_instruction_once(ctx.result_issues, "lean", get_message(self.channel, "coach_backward"))
            self.set_feedback(ctx, get_message(self.channel, "too_backward"))
        else:
            self.set_feedback(ctx, get_message(self.channel, "neutral"))

        self.debug_data["trunkLean"] = f"{lean:.1f}"
        self.debug_data["maxTrunkLean"] = f"{self.max_trunk_lean:.1f}"

    def _reset_state(self) -> None:
        self._forward_filter.reset()
        self._backward_filter.reset()
        self.max_trunk_lean = None
