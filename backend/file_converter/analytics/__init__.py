from .recorder import AnalyticsRecorder, get_analytics_recorder
from .schemas import AnalyticsEvent, AnalyticsEventIn, AnalyticsSummary, PerformanceInsights

__all__ = [
    "AnalyticsEvent",
    "AnalyticsEventIn",
    "AnalyticsRecorder",
    "AnalyticsSummary",
    "PerformanceInsights",
    "get_analytics_recorder",
]
