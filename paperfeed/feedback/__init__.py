"""Feedback recording and interest-vector learning."""

from paperfeed.feedback.service import FeedbackOutcome, FeedbackService
from paperfeed.feedback.updater import FeedbackVectorUpdater, action_sign, ema_update


__all__ = [
    "FeedbackOutcome",
    "FeedbackService",
    "FeedbackVectorUpdater",
    "action_sign",
    "ema_update",
]
