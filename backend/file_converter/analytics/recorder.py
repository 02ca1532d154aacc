"""Bounded in-memory log of conversion attempts, with summaries and insights.

Nothing is persisted; a restart discards all history.
"""
import logging
import threading
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from file_converter.analytics.schemas import (
    AnalyticsEvent,
    AnalyticsSummary,
    DailyStat,
    FormatAnalytics,
    FormatCount,
    FormatTime,
    PerformanceInsights,
)
from file_converter.config import ANALYTICS_MAX_EVENTS

logger = logging.getLogger("converter.analytics")

TIME_RANGES = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}

TOP_FORMATS_LIMIT = 10
DAILY_STATS_DAYS = 30

# Insight thresholds
MIN_SUCCESS_RATE = 95.0
MAX_AVG_PROCESSING_MS = 5000.0
MIN_PAIR_SUCCESS_RATE = 90.0
MAX_PAIR_PROCESSING_MS = 10000.0
MAX_STORAGE_BYTES = 1024 * 1024 * 1024


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class AnalyticsRecorder:
    """Fixed-capacity append-only event log; the oldest events are dropped on overflow."""

    def __init__(self, max_events: int = ANALYTICS_MAX_EVENTS, clock: Callable[[], datetime] = _utcnow):
        if max_events < 1:
            raise ValueError("max_events must be positive")
        self._events: deque[AnalyticsEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._clock = clock
        self.max_events = max_events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def record(
        self,
        file_name: str,
        original_format: str,
        target_format: str,
        file_size: float,
        processing_time: float,
        success: bool,
        error_message: Optional[str] = None,
    ) -> str:
        event = AnalyticsEvent(
            id=uuid.uuid4().hex,
            file_name=file_name,
            original_format=original_format,
            target_format=target_format,
            file_size=file_size,
            processing_time=processing_time,
            success=success,
            error_message=error_message,
            timestamp=self._clock(),
        )
        with self._lock:
            self._events.append(event)
        logger.debug("Recorded %s %s success=%s", event.id, event.pair, success)
        return event.id

    def _snapshot(self, time_range: str = "all") -> list[AnalyticsEvent]:
        if time_range not in TIME_RANGES:
            raise ValueError(f"Invalid time range: {time_range}")
        with self._lock:
            events = list(self._events)
        window = TIME_RANGES[time_range]
        if window is None:
            return events
        since = self._clock() - window
        return [e for e in events if e.timestamp >= since]

    def summarize(self, time_range: str = "all") -> AnalyticsSummary:
        events = self._snapshot(time_range)
        total = len(events)
        if total == 0:
            return AnalyticsSummary()
        successes = sum(1 for e in events if e.success)

        counts: dict[str, int] = {}
        times: dict[str, list[float]] = {}
        for e in events:
            counts[e.pair] = counts.get(e.pair, 0) + 1
            times.setdefault(e.pair, []).append(e.processing_time)

        most_converted = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_FORMATS_LIMIT]
        time_by_format = sorted(
            ((pair, _mean(ts)) for pair, ts in times.items()),
            key=lambda kv: kv[1],
            reverse=True,
        )[:TOP_FORMATS_LIMIT]

        return AnalyticsSummary(
            total_conversions=total,
            successful_conversions=successes,
            failed_conversions=total - successes,
            success_rate=successes / total * 100,
            average_processing_time=_mean([e.processing_time for e in events]),
            total_storage_used=sum(e.file_size for e in events),
            most_converted_formats=[FormatCount(format=p, count=c) for p, c in most_converted],
            processing_time_by_format=[FormatTime(format=p, avg_time=t) for p, t in time_by_format],
            daily_stats=self._daily_stats(events),
        )

    @staticmethod
    def _daily_stats(events: list[AnalyticsEvent]) -> list[DailyStat]:
        days: dict[str, list[int]] = {}
        for e in events:
            day = e.timestamp.astimezone(timezone.utc).date().isoformat()
            bucket = days.setdefault(day, [0, 0])
            bucket[0] += 1
            if e.success:
                bucket[1] += 1
        stats = [
            DailyStat(date=day, conversions=n, success_rate=ok / n * 100)
            for day, (n, ok) in sorted(days.items())
        ]
        return stats[-DAILY_STATS_DAYS:]

    def format_analytics(self, format: Optional[str] = None) -> list[FormatAnalytics]:
        """Per (source → target) pair stats, optionally limited to pairs involving ``format``."""
        events = self._snapshot()
        if format:
            events = [e for e in events if format in (e.original_format, e.target_format)]
        groups: dict[str, list[AnalyticsEvent]] = {}
        for e in events:
            groups.setdefault(e.pair, []).append(e)
        result = []
        for pair, items in groups.items():
            ok = sum(1 for e in items if e.success)
            result.append(FormatAnalytics(
                format=pair,
                total_conversions=len(items),
                success_count=ok,
                failure_count=len(items) - ok,
                success_rate=ok / len(items) * 100,
                average_processing_time=_mean([e.processing_time for e in items]),
                average_file_size=_mean([e.file_size for e in items]),
                total_storage_used=sum(e.file_size for e in items),
            ))
        return result

    def insights(self) -> PerformanceInsights:
        summary = self.summarize()
        insights = PerformanceInsights()
        if summary.total_conversions == 0:
            return insights

        if summary.success_rate < MIN_SUCCESS_RATE:
            insights.recommendations.append(
                f"Success rate is {summary.success_rate:.1f}%. Consider optimizing conversion parameters."
            )
        if summary.average_processing_time > MAX_AVG_PROCESSING_MS:
            insights.recommendations.append(
                f"Average processing time is {summary.average_processing_time / 1000:.1f}s. "
                "Consider upgrading server resources."
            )
        for fmt in self.format_analytics():
            if fmt.success_rate < MIN_PAIR_SUCCESS_RATE:
                insights.bottlenecks.append(f"{fmt.format} has low success rate ({fmt.success_rate:.1f}%)")
            if fmt.average_processing_time > MAX_PAIR_PROCESSING_MS:
                insights.bottlenecks.append(
                    f"{fmt.format} is slow ({fmt.average_processing_time / 1000:.1f}s average)"
                )
        if summary.total_storage_used > MAX_STORAGE_BYTES:
            insights.optimizations.append(
                "Consider implementing automatic file cleanup to reduce storage usage"
            )
        return insights

    def export(self) -> list[AnalyticsEvent]:
        return self._snapshot()

    def import_events(self, events: Iterable[AnalyticsEvent]) -> None:
        """Replace the log with ``events`` (oldest first); only the newest max_events are kept."""
        with self._lock:
            self._events = deque(events, maxlen=self.max_events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


# Singleton
_recorder: Optional[AnalyticsRecorder] = None


def get_analytics_recorder() -> AnalyticsRecorder:
    global _recorder
    if _recorder is None:
        _recorder = AnalyticsRecorder()
    return _recorder
