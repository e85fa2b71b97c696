from typing import Any, Dict, Optional

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel
from .hysteresis import HysteresisFilter
from .squat_metric_base import RepContext, SquatMetricBase
from .squat_state_machine import SquatPhase


class HipShoulderSyncMetric(SquatMetricBase):
    """Hips shooting up ahead of the shoulders on the way up."""

    name = "HipShoulderSync"
    channel = FeedbackChannel.SYNC

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.max_hip_lead = float(self.config.get("max_hip_lead", 0.15))
        self._filter = HysteresisFilter(int(self.config.get("hysteresis_frames", 3)))
        self._hip_start_y: Optional[float] = None
        self._shoulder_start_y: Optional[float] = None
        self.max_hip_lead_seen: Optional[float] = None

    def update(self, ctx: RepContext) -> None:
        if ctx.squat_state != SquatPhase.ASCENDING:
            return
        if ctx.hip_y is None or ctx.shoulder_y is None:
            return
        if self._hip_start_y is None:
            self._hip_start_y = ctx.hip_y
            self._shoulder_start_y = ctx.shoulder_y

        # Image y grows downwards, so rising is start_y - y.
        hip_rise = self._hip_start_y - ctx.hip_y
        shoulder_rise = self._shoulder_start_y - ctx.shoulder_y
        lead = ctx.normalized(hip_rise - shoulder_rise)
        if lead is None:
            return
        if self.max_hip_lead_seen is None or lead > self.max_hip_lead_seen:
            self.max_hip_lead_seen = lead

        if self._filter.update(lead > self.max_hip_lead):
            self.log_fault(ctx.squat_state, get_message(self.channel, "fault_hips_first"))
            self.issue_instruction_once(ctx.result_issues, "hips_first", get_message(self.channel, "coach_hips_first"))
            self.set_feedback(ctx, get_message(self.channel, "hips_first"))
        else:
            self.set_feedback(ctx, get_message(self.channel, "in_sync"))

        self.debug_data["hipLead"] = f"{self.max_hip_lead_seen:.2f}"

    def _reset_state(self) -> None:
        self._filter.reset()
        self._hip_start_y = None
        self._shoulder_start_y = None
        self.max_hip_lead_seen = None
