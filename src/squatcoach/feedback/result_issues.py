from enum import Enum
from typing import Dict, Union


class FeedbackChannel(str, Enum):
    """Display channels a metric may write to. One channel per metric."""
    DEPTH = "Depth"
    BACK = "Back"
    FEET = "Feet"
    TEMPO = "Tempo"
    SYNC = "Sync"
    SYSTEM = "System"


def _key(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class ResultIssues:
    """
    Shared output sink for one exercise.

    ``feedback`` holds live per-frame cards (channel -> text) and is cleared at
    the start of every frame. ``instructions`` holds coaching chips
    (phase -> channel -> text); they outlive the frame and are only cleared
    when the next repetition starts descending.
    """

    def __init__(self):
        self.feedback: Dict[str, str] = {}
        self.instructions: Dict[str, Dict[str, str]] = {}

    def set_feedback(self, channel: FeedbackChannel, message: str) -> None:
        self.feedback[_key(channel)] = message

    def add_instruction(self, phase, channel: FeedbackChannel, message: str) -> None:
        self.instructions.setdefault(_key(phase), {})[_key(channel)] = message

    def instructions_for(self, phase) -> Dict[str, str]:
        return dict(self.instructions.get(_key(phase), {}))

    def clear_feedback(self) -> None:
        self.feedback.clear()

    def clear_instructions(self) -> None:
        self.instructions.clear()

    def clear(self) -> None:
        self.clear_feedback()
        self.clear_instructions()
