from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from ..feedback.result_issues import FeedbackChannel, ResultIssues


class UserLevel(Enum):
    """Enum representing different user experience levels."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CameraFacing(Enum):
    """Which way the subject faces relative to the camera, resolved upstream."""
    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"
    ANGLED = "angled"
    UNDEFINED = "undefined"


@dataclass
class LevelConfig:
    """Configuration for a specific user level."""
    min_landmark_visibility: float  # Minimum visibility for a landmark to count as present
    description: str  # Description of the level's characteristics


@dataclass(frozen=True)
class PoseSnapshot:
    """One smoothed, orientation-tagged pose handed to the analyzer per frame."""
    landmarks: Dict[str, List[float]]  # name -> [x, y, z, visibility]
    camera_facing: CameraFacing = CameraFacing.UNDEFINED
    timestamp_ms: Optional[int] = None
    scale_factor: Optional[float] = None  # Reference torso length; estimated when None


@dataclass
class ExerciseState:
    """Represents the live state of an exercise after one frame."""
    name: str
    phase: str  # e.g., "standing", "descending", "bottom", "ascending"
    rep_count: int
    is_correct_form: bool
    feedback: Dict[str, str] = field(default_factory=dict)
    instructions: Dict[str, Dict[str, str]] = field(default_factory=dict)
    analysis_reliable: bool = True  # False when the frame could not be analyzed
    error_message: Optional[str] = None


@dataclass
class RepSummary:
    """Outcome of one completed repetition."""
    rep_number: int
    correct_form: bool
    faults: Dict[str, Dict[str, str]]  # phase -> fault type -> message
    timestamp_ms: int
    telemetry: Dict[str, str] = field(default_factory=dict)


class BaseExerciseAnalyzer(ABC):
    """
    Base class for exercise analysis implementations.

    Runs the per-frame pipeline shared by every exercise:
    1) reset the live feedback cards
    2) treat an empty snapshot as idle
    3) resolve the scale factor
    4) exercise-specific safety checks
    5) exercise-specific analysis (state machine + metrics)
    """

    DEFAULT_LEVEL_CONFIGS = {
        UserLevel.BEGINNER: LevelConfig(
            min_landmark_visibility=0.4,  # More forgiving visibility threshold
            description="Suitable for those new to the exercise. Focus on basic form and safety."
        ),
        UserLevel.INTERMEDIATE: LevelConfig(
            min_landmark_visibility=0.5,
            description="For those with basic proficiency. Focus on proper form and technique."
        ),
        UserLevel.ADVANCED: LevelConfig(
            min_landmark_visibility=0.6,  # Stricter visibility threshold
            description="For experienced users. Focus on perfect form and advanced techniques."
        )
    }

    def __init__(self, user_level: UserLevel = UserLevel.BEGINNER):
        """
        Initialize the analyzer with configuration parameters.

        Args:
            user_level: User's experience level
        """
        self.user_level = user_level
        self.level_config = self.DEFAULT_LEVEL_CONFIGS[user_level]
        self.rep_count = 0
        self.correct_form = True
        self.camera_facing = CameraFacing.UNDEFINED
        self.distance_scale_factor: Optional[float] = None
        self.result_issues = ResultIssues()
        self.debug_data: Dict[str, object] = {}

    def process_pose(self, snapshot: Optional[PoseSnapshot]) -> Optional[Union[ExerciseState, RepSummary]]:
        """
        Main entry point called once per frame.

        Returns:
            None when there is no pose data, a RepSummary on the frame a
            repetition completes, otherwise the live ExerciseState.
        """
        self.result_issues.clear_feedback()

        if snapshot is None or not snapshot.landmarks:
            return None

        self.camera_facing = snapshot.camera_facing
        self._prepare_frame(snapshot)
        self.distance_scale_factor = self.estimate_scale_factor(snapshot)

        safety_error = self.check_safety(snapshot)
        if safety_error is not None:
            self.result_issues.set_feedback(FeedbackChannel.SYSTEM, safety_error)
            self._populate_base_debug_data()
            return self._build_state(analysis_reliable=False, error_message=safety_error)

        self._populate_base_debug_data()
        return self.analyze(snapshot)

    def _prepare_frame(self, snapshot: PoseSnapshot) -> None:
        """Hook for per-frame setup that must run before the scale factor and safety checks."""
        pass

    def estimate_scale_factor(self, snapshot: PoseSnapshot) -> Optional[float]:
        """Scale factor for this frame; exercises may estimate one from landmarks."""
        return snapshot.scale_factor

    def get_missing_landmarks(self, landmarks: Dict[str, List[float]]) -> List[str]:
        min_visibility = self.level_config.min_landmark_visibility
        return [
            name for name in self.get_required_landmarks()
            if name not in landmarks or len(landmarks[name]) < 4 or landmarks[name][3] < min_visibility
        ]

    def _populate_base_debug_data(self) -> None:
        self.debug_data['exercise'] = self.get_exercise_name()
        self.debug_data['cameraFacing'] = self.camera_facing.value
        self.debug_data['scaleFactor'] = self.distance_scale_factor

    def _build_state(self, analysis_reliable: bool = True, error_message: Optional[str] = None) -> ExerciseState:
        return ExerciseState(
            name=self.get_exercise_name(),
            phase=self.get_phase_name(),
            rep_count=self.rep_count,
            is_correct_form=self.correct_form,
            feedback=dict(self.result_issues.feedback),
            instructions={k: dict(v) for k, v in self.result_issues.instructions.items()},
            analysis_reliable=analysis_reliable,
            error_message=error_message
        )

    @abstractmethod
    def get_exercise_name(self) -> str:
        """Get the name of the exercise being analyzed."""
        pass

    @abstractmethod
    def get_phase_name(self) -> str:
        """Get the name of the current exercise phase."""
        pass

    @abstractmethod
    def get_required_landmarks(self) -> List[str]:
        """Get the landmarks without which a frame cannot be analyzed."""
        pass

    @abstractmethod
    def check_safety(self, snapshot: PoseSnapshot) -> Optional[str]:
        """
        Exercise-specific check run before analysis.

        Returns:
            A user-facing message when the frame must not be analyzed, else None
        """
        pass

    @abstractmethod
    def analyze(self, snapshot: PoseSnapshot) -> Union[ExerciseState, RepSummary]:
        """
        Analyze a single frame of exercise performance.

        Args:
            snapshot: Pose snapshot that passed the safety check

        Returns:
            ExerciseState, or RepSummary when the frame completes a repetition
        """
        pass
