from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import numpy as np

_REQUIRED_THRESHOLDS = ("descent_start", "bottom_reached", "bottom_upper", "ascent_margin", "stand_reached")


# --- Phase Enum ---
class SquatPhase(Enum):
    STANDING = "standing"
    DESCENDING = "descending"
    BOTTOM = "bottom"
    ASCENDING = "ascending"


@dataclass(frozen=True)
class PhaseTransition:
    from_phase: SquatPhase
    to_phase: SquatPhase

    @property
    def is_rep_completion(self) -> bool:
        return self.to_phase == SquatPhase.STANDING and self.from_phase != SquatPhase.STANDING


class SquatStateMachine:
    """
    Knee-angle driven squat phase tracker.

    Phases advance STANDING -> DESCENDING -> BOTTOM -> ASCENDING, and any
    active phase returns to STANDING once the knee extends past
    ``stand_reached``. That completion rule is evaluated first every frame so
    a finished rep is never missed. At most one transition happens per frame.
    """

    def __init__(self, thresholds: Dict[str, float]):
        missing = [k for k in _REQUIRED_THRESHOLDS if k not in thresholds]
        if missing:
            raise ValueError(f"Missing phase thresholds: {', '.join(missing)}")
        self.descent_start = float(thresholds["descent_start"])
        self.bottom_reached = float(thresholds["bottom_reached"])
        self.bottom_upper = float(thresholds["bottom_upper"])
        self.ascent_margin = float(thresholds["ascent_margin"])
        self.stand_reached = float(thresholds["stand_reached"])
        if not self.bottom_reached < self.descent_start < self.stand_reached:
            raise ValueError(
                "Phase thresholds must satisfy bottom_reached < descent_start < stand_reached, got "
                f"{self.bottom_reached}, {self.descent_start}, {self.stand_reached}"
            )
        if self.bottom_upper < self.bottom_reached or self.bottom_upper + self.ascent_margin >= self.stand_reached:
            raise ValueError(
                "Bottom band must satisfy bottom_reached <= bottom_upper and "
                "bottom_upper + ascent_margin < stand_reached"
            )
        self._phase = SquatPhase.STANDING

    @property
    def phase(self) -> SquatPhase:
        return self._phase

    def next_phase(self, knee_angle: Optional[float]) -> SquatPhase:
        """Phase the machine would move to for this angle, without applying it."""
        if knee_angle is None or np.isnan(knee_angle):
            return self._phase
        if self._phase != SquatPhase.STANDING and knee_angle > self.stand_reached:
            return SquatPhase.STANDING
        if self._phase == SquatPhase.STANDING:
            if knee_angle <= self.descent_start:
                return SquatPhase.DESCENDING
        elif self._phase == SquatPhase.DESCENDING:
            if knee_angle <= self.bottom_reached:
                return SquatPhase.BOTTOM
        elif self._phase == SquatPhase.BOTTOM:
            if knee_angle > self.bottom_upper + self.ascent_margin:
                return SquatPhase.ASCENDING
        return self._phase

    def update(self, knee_angle: Optional[float]) -> Optional[PhaseTransition]:
        new_phase = self.next_phase(knee_angle)
        if new_phase == self._phase:
            return None
        transition = PhaseTransition(self._phase, new_phase)
        self._phase = new_phase
        return transition

    def reset(self) -> None:
        self._phase = SquatPhase.STANDING
