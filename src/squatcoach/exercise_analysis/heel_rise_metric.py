from typing import Any, Dict, Optional

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel
from .hysteresis import HysteresisFilter
from .squat_metric_base import RepContext, SquatMetricBase


class HeelRiseMetric(SquatMetricBase):
    """Heels lifting off the floor. Informational: does not fail the rep."""

    name = "HeelRise"
    channel = FeedbackChannel.FEET

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.heel_rise_max = float(self.config.get("heel_rise_max", 0.08))
        self._filter = HysteresisFilter(int(self.config.get("hysteresis_frames", 3)))
        self.max_heel_rise: Optional[float] = None

    def update(self, ctx: RepContext) -> None:
        rise = ctx.normalized(ctx.heel_distance)
        if rise is None:
            return
        if self.max_heel_rise is None or rise > self.max_heel_rise:
            self.max_heel_rise = rise

        if self._filter.update(rise > self.heel_rise_max):
            self.log_fault(ctx.squat_state, get_message(self.channel, "fault_heel_rise"), affects_form=False)
            self.issue_instruction_once(ctx.result_issues, "heel_rise", get_message(self.channel, "coach_heel_rise"))
            self.set_feedback(ctx, get_message(self.channel, "heels_up"))
        else:
            self.set_feedback(ctx, get_message(self.channel, "grounded"))

        self.debug_data["maxHeelRise"] = f"{self.max_heel_rise:.3f}"

    def _reset_state(self) -> None:
        self._filter.reset()
        self.max_heel_rise = None
