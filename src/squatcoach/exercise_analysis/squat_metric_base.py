"""
Shared types for squat form metrics.

Each metric is a self-contained unit that:
- receives frame data through update()
- writes live feedback and coaching instructions to ctx.result_issues
- logs faults into its own fault list
- resets cleanly between reps

Data flow:
- feedback{}      -> cleared every frame by the analyzer, metrics write live cards
- instructions{}  -> phase -> channel -> coaching text, cleared when the next
                     rep starts descending
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from ..feedback.result_issues import FeedbackChannel, ResultIssues
from .base_analyzer import CameraFacing
from .squat_state_machine import SquatPhase


@dataclass(frozen=True)
class RepContext:
    """
    Per-frame snapshot of the geometry every metric reads.

    Geometry fields are None when a landmark was missing or the geometry was
    degenerate for this frame.
    """
    knee_angle: Optional[float]
    trunk_lean: Optional[float]  # Positive = forward, negative = backward
    clock_angle: Optional[float]  # Raw hip->shoulder clock angle
    heel_distance: Optional[float]  # foot_index.y - heel.y, unnormalized
    scale_factor: Optional[float]  # Torso length
    squat_state: SquatPhase
    frame_timestamp: int  # milliseconds
    knee_y: Optional[float]
    hip_y: Optional[float]
    shoulder_y: Optional[float]
    result_issues: ResultIssues
    camera_facing: CameraFacing = CameraFacing.UNDEFINED

    def normalized(self, distance: Optional[float]) -> Optional[float]:
        if distance is None or not self.scale_factor or self.scale_factor <= 0:
            return None
        return distance / self.scale_factor


@dataclass(frozen=True)
class FaultRecord:
    """A single fault logged by a metric."""
    phase: str  # e.g. "descending", "bottom"
    type: str  # e.g. "Back", "Depth", "Feet", "Tempo"
    message: str
    affects_form: bool = True  # False = informational only (like heel rise)


class SquatMetricBase(ABC):
    """Interface every squat metric implements."""

    name: str = "Metric"
    channel: FeedbackChannel = FeedbackChannel.SYSTEM

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = dict(config or {})
        self.logger = logging.getLogger(f"SquatAnalyzer.{self.name}")
        self._faults: List[FaultRecord] = []
        self._fault_keys: Set[Tuple[str, str]] = set()
        self._issued_instructions: Set[str] = set()
        self.debug_data: Dict[str, Any] = {}

    @property
    def faults(self) -> Tuple[FaultRecord, ...]:
        """Faults accumulated this rep."""
        return tuple(self._faults)

    @abstractmethod
    def update(self, ctx: RepContext) -> None:
        """Called every frame while the squat is not standing."""
        pass

    def on_state_transition(self, from_phase: SquatPhase, to_phase: SquatPhase, timestamp_ms: int) -> None:
        """Called on every phase change, before the next update()."""
        pass

    def reset(self) -> None:
        """Reset all internal state for the next rep."""
        self._faults.clear()
        self._fault_keys.clear()
        self._issued_instructions.clear()
        self.debug_data.clear()
        self._reset_state()

    def _reset_state(self) -> None:
        pass

    def log_fault(self, phase, message: str, affects_form: bool = True,
                  fault_type: Optional[str] = None) -> bool:
        """
        Record a fault unless one of this type was already logged in this phase.

        The fault type defaults to the metric's channel; metrics that detect
        more than one distinct fault pass their own type.
        """
        phase_name = phase.value if isinstance(phase, SquatPhase) else str(phase)
        fault_type = fault_type or self.channel.value
        key = (phase_name, fault_type)
        if key in self._fault_keys:
            return False
        self._fault_keys.add(key)
        self._faults.append(FaultRecord(phase_name, fault_type, message, affects_form))
        self.logger.debug(f"Fault logged: {phase_name}/{fault_type}: {message}")
        return True

    def set_feedback(self, ctx: RepContext, message: str) -> None:
        ctx.result_issues.set_feedback(self.channel, message)

    def issue_instruction_once(self, result_issues: ResultIssues, flag: str, message: str,
                               phase: SquatPhase = SquatPhase.STANDING) -> None:
        # Standing-keyed instructions are only shown once the rep is over.
        if flag in self._issued_instructions:
            return
        self._issued_instructions.add(flag)
        result_issues.add_instruction(phase, self.channel, message)
