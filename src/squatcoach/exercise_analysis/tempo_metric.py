from typing import Any, Dict, Optional

from ..feedback.feedback_messages import get_message
from ..feedback.result_issues import FeedbackChannel, ResultIssues
from .squat_metric_base import RepContext, SquatMetricBase
from .squat_state_machine import SquatPhase


class TempoMetric(SquatMetricBase):
    """
    Descent and ascent durations, measured between phase transitions.

    Durations come from the frame timestamps carried by the transitions, so
    the metric never reads the wall clock.
    """

    name = "Tempo"
    channel = FeedbackChannel.TEMPO

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.min_descent_ms = float(self.config.get("min_descent_ms", 500))
        self.max_ascent_ms = float(self.config.get("max_ascent_ms", 4000))
        self._descent_start: Optional[int] = None
        self._bottom_reached: Optional[int] = None
        self._ascent_start: Optional[int] = None
        self._rep_end: Optional[int] = None

    @property
    def descent_ms(self) -> Optional[int]:
        if self._descent_start is None or self._bottom_reached is None:
            return None
        return self._bottom_reached - self._descent_start

    @property
    def ascent_ms(self) -> Optional[int]:
        if self._ascent_start is None or self._rep_end is None:
            return None
        return self._rep_end - self._ascent_start

    def on_state_transition(self, from_phase: SquatPhase, to_phase: SquatPhase, timestamp_ms: int) -> None:
        if to_phase == SquatPhase.DESCENDING:
            self._descent_start = timestamp_ms
        elif to_phase == SquatPhase.BOTTOM:
            self._bottom_reached = timestamp_ms
        elif to_phase == SquatPhase.ASCENDING:
            self._ascent_start = timestamp_ms
        elif to_phase == SquatPhase.STANDING:
            self._rep_end = timestamp_ms

    def update(self, ctx: RepContext) -> None:
        if ctx.squat_state == SquatPhase.DESCENDING and self._descent_start is not None:
            elapsed = max(0, ctx.frame_timestamp - self._descent_start)
            self.set_feedback(ctx, get_message(self.channel, "descent", seconds=elapsed / 1000.0))

    def evaluate_rep(self, result_issues: ResultIssues) -> None:
        """Full-rep tempo check; runs after the completion transition was delivered."""
        descent = self.descent_ms
        ascent = self.ascent_ms
        if descent is not None:
            self.debug_data["descentMs"] = str(descent)
            if descent < self.min_descent_ms:
                self.log_fault(SquatPhase.DESCENDING, get_message(self.channel, "fault_fast_descent"))
                self.issue_instruction_once(
                    result_issues, "fast_descent",
                    get_message(self.channel, "coach_fast_descent", seconds=self.min_descent_ms / 1000.0)
                )
        if ascent is not None:
            self.debug_data["ascentMs"] = str(ascent)
            if ascent > self.max_ascent_ms:
                self.log_fault(SquatPhase.ASCENDING, get_message(self.channel, "fault_slow_ascent"), affects_form=False)
                self.issue_instruction_once(result_issues, "slow_ascent", get_message(self.channel, "coach_slow_ascent"))

    def _reset_state(self) -> None:
        self._descent_start = None
        self._bottom_reached = None
        self._ascent_start = None
        self._rep_end = None
