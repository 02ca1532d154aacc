"""Analytics payloads. Serialized with camelCase aliases for the dashboard."""
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyticsEventIn(CamelModel):
    """Body of POST /api/analytics (id and timestamp are assigned on record)."""

    file_name: str = Field(min_length=1)
    original_format: str = Field(min_length=1)
    target_format: str = Field(min_length=1)
    file_size: Union[int, float] = Field(ge=0)
    processing_time: float = Field(ge=0)
    success: bool
    error_message: Optional[str] = None


class AnalyticsEvent(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    file_name: str
    original_format: str
    target_format: str
    file_size: Union[int, float]
    processing_time: float  # milliseconds
    success: bool
    error_message: Optional[str] = None
    timestamp: datetime

    @property
    def pair(self) -> str:
        return f"{self.original_format} → {self.target_format}"


class FormatCount(CamelModel):
    format: str
    count: int


class FormatTime(CamelModel):
    format: str
    avg_time: float


class DailyStat(CamelModel):
    date: str
    conversions: int
    success_rate: float


class AnalyticsSummary(CamelModel):
    total_conversions: int = 0
    successful_conversions: int = 0
    failed_conversions: int = 0
    success_rate: float = 0.0
    average_processing_time: float = 0.0
    total_storage_used: Union[int, float] = 0
    most_converted_formats: list[FormatCount] = []
    processing_time_by_format: list[FormatTime] = []
    daily_stats: list[DailyStat] = []


class FormatAnalytics(CamelModel):
    format: str
    total_conversions: int
    success_count: int
    failure_count: int
    success_rate: float
    average_processing_time: float
    average_file_size: float
    total_storage_used: Union[int, float]


class PerformanceInsights(CamelModel):
    recommendations: list[str] = []
    bottlenecks: list[str] = []
    optimizations: list[str] = []
