"""Learning feedback: record user confirmations and corrections."""

from .recorder import FeedbackRecorder
from .sinks import CorrectionSink, DatabaseCorrectionSink, InMemoryCorrectionSink

__all__ = [
    "FeedbackRecorder",
    "CorrectionSink",
    "InMemoryCorrectionSink",
    "DatabaseCorrectionSink",
]
