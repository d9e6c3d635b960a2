"""Analytics report models.

Serialized with camelCase keys (``model_dump(by_alias=True)``) to match the
dashboard schema: summary counts, categoryBreakdown, performanceTrends,
failureAnalysis, stabilityMetrics and executionTimeline.
"""

from collections.abc import Mapping, Sequence
import datetime as dt
from enum import StrEnum

from pydantic import Field

from api_test_engine.models.base import CamelModel


class TrendDirection(StrEnum):
    IMPROVING = "IMPROVING"
    DEGRADING = "DEGRADING"
    STABLE = "STABLE"


class PerformanceTrend(CamelModel):
    """Duration statistics and trend for one test name."""

    test_name: str
    average_duration: float
    min_duration: float
    max_duration: float
    direction: TrendDirection = Field(alias="trendDirection")


class FailureAnalysis(CamelModel):
    """Where and when failures happened."""

    failure_rate_by_category: Mapping[str, float] = Field(default_factory=dict)
    most_failing_tests: Mapping[str, int] = Field(default_factory=dict)
    failure_timeline: Mapping[dt.date, int] = Field(default_factory=dict)


class StabilityMetrics(CamelModel):
    """Flaky tests and overall outcome consistency."""

    flaky_tests: Sequence[str] = Field(default_factory=list)
    consistency_score: float = 100.0


class TimelineEntry(CamelModel):
    """Execution counts for one calendar date."""

    date: dt.date
    total_tests: int
    passed_tests: int
    failed_tests: int
    average_duration: float


class Report(CamelModel):
    """Analytics derived from the full execution history."""

    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    pass_rate: float = 0.0
    average_execution_time: float = 0.0
    total_execution_time: int = 0
    category_breakdown: Mapping[str, int] = Field(default_factory=dict)
    performance_trends: Mapping[str, PerformanceTrend] = Field(default_factory=dict)
    failure_analysis: FailureAnalysis = Field(default_factory=FailureAnalysis)
    stability_metrics: StabilityMetrics = Field(default_factory=StabilityMetrics)
    execution_timeline: Sequence[TimelineEntry] = Field(default_factory=list)
