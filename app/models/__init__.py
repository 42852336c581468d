from .mood_entry import MoodEntry
from .journal_entry import JournalEntry
from .cbt_record import CBTRecord
from .emotion_session import EmotionSession
from .time_capsule import TimeCapsule
from .risk_alert import RiskAlert
from .assessment_run import AssessmentRun

__all__ = [
    "MoodEntry",
    "JournalEntry",
    "CBTRecord",
    "EmotionSession",
    "TimeCapsule",
    "RiskAlert",
    "AssessmentRun",
]
