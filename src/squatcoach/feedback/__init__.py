"""
Feedback sink and message catalog shared by all squat metrics.
"""

from .result_issues import FeedbackChannel, ResultIssues
from .feedback_messages import FEEDBACK_MESSAGES, get_message

__all__ = [
    'FeedbackChannel',
    'ResultIssues',
    'FEEDBACK_MESSAGES',
    'get_message'
]
