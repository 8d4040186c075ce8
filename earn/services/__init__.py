"""Interfaces the earn flow calls out to"""

from .analytics import AnalyticsSink, EarnEvents, LoggingAnalyticsSink, RecordingAnalyticsSink
from .navigation import CICOFlow, Navigator, RecordingNavigator, Screens

__all__ = [
    "AnalyticsSink",
    "EarnEvents",
    "LoggingAnalyticsSink",
    "RecordingAnalyticsSink",
    "CICOFlow",
    "Navigator",
    "RecordingNavigator",
    "Screens",
]
