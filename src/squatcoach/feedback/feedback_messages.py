from typing import Dict

from .result_issues import FeedbackChannel

# Live cards (shown every frame) and coaching instructions (shown once the rep
# is over), grouped by the channel that owns them.
FEEDBACK_MESSAGES: Dict[FeedbackChannel, Dict[str, str]] = {
    FeedbackChannel.DEPTH: {
        "go_lower": "Go lower",
        "good_depth": "Good depth",
        "sink_hips": "Sink your hips to knee level",
        "drive_up": "Drive up",
        "fault_shallow": "Squat was too shallow",
        "fault_hips_high": "Hips stayed above the knees",
        "coach_depth": "Squat deeper: bring your hips down to knee level",
    },
    FeedbackChannel.BACK: {
        "neutral": "Back angle OK",
        "too_forward": "Chest up, you are leaning forward",
        "too_backward": "Don't lean back",
        "fault_forward": "Leaned too far forward",
        "fault_backward": "Leaned backward",
        "coach_forward": "Keep your chest up and your torso more upright",
        "coach_backward": "Shift your weight forward over mid-foot, don't lean back",
    },
    FeedbackChannel.FEET: {
        "grounded": "Heels grounded",
        "heels_up": "Keep your heels down",
        "fault_heel_rise": "Heels lifted off the floor",
        "coach_heel_rise": "Push through your heels and keep them flat",
    },
    FeedbackChannel.TEMPO: {
        "descent": "Descent {seconds:.1f}s",
        "fault_fast_descent": "Descent was too fast",
        "fault_slow_ascent": "Ascent was slow",
        "coach_fast_descent": "Control the way down, take at least {seconds:.1f}s",
        "coach_slow_ascent": "Drive up with more intent",
    },
    FeedbackChannel.SYNC: {
        "in_sync": "Hips and shoulders rising together",
        "hips_first": "Lift your chest with your hips",
        "fault_hips_first": "Hips rose faster than shoulders",
        "coach_hips_first": "Lead with your chest: raise hips and shoulders together",
    },
    FeedbackChannel.SYSTEM: {
        "missing_landmarks": "Please keep your whole body in frame",
    },
}


def get_message(channel: FeedbackChannel, key: str, **kwargs) -> str:
    message = FEEDBACK_MESSAGES[channel][key]
    return message.format(**kwargs) if kwargs else message
