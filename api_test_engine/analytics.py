"""Statistics over the recorded execution history.

Every function here is a pure function of the record sequence it is given;
the only time information used is each record's own timestamp.
"""

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from statistics import fmean

from api_test_engine.models.execution import TestExecution
from api_test_engine.models.report import (
    FailureAnalysis,
    PerformanceTrend,
    Report,
    StabilityMetrics,
    TimelineEntry,
    TrendDirection,
)
from api_test_engine.recorder import ExecutionRecorder

log = logging.getLogger(__name__)

TREND_BAND = 0.1
TOP_FAILING_LIMIT = 10


@dataclass(frozen=True, kw_only=True)
class AnalyticsEngine:
    """Builds reports from a recorder's history on demand."""

    recorder: ExecutionRecorder
    trend_band: float = TREND_BAND
    top_failing_limit: int = TOP_FAILING_LIMIT

    def generate_report(self) -> Report:
        """Derive a report from a snapshot of all recorded executions."""
        report = build_report(
            self.recorder.all_records(),
            trend_band=self.trend_band,
            top_failing_limit=self.top_failing_limit,
        )
        log.info(
            "Generated analytics report with %d test executions", report.total_tests
        )
        return report


def build_report(
    records: Sequence[TestExecution],
    *,
    trend_band: float = TREND_BAND,
    top_failing_limit: int = TOP_FAILING_LIMIT,
) -> Report:
    """Compute summary counts, trends, failure analysis and timeline."""
    total = len(records)
    passed = sum(1 for record in records if record.passed)
    durations = [record.duration_ms for record in records]

    return Report(
        total_tests=total,
        passed_tests=passed,
        failed_tests=total - passed,
        pass_rate=passed * 100.0 / total if total else 0.0,
        average_execution_time=fmean(durations) if durations else 0.0,
        total_execution_time=sum(durations),
        category_breakdown=dict(Counter(record.category for record in records)),
        performance_trends=calculate_performance_trends(records, band=trend_band),
        failure_analysis=analyze_failures(records, limit=top_failing_limit),
        stability_metrics=calculate_stability(records),
        execution_timeline=build_timeline(records),
    )


def classify_trend(
    durations: Sequence[float], band: float = TREND_BAND
) -> TrendDirection:
    """Compare the mean of the second half of durations with the first half.

    With an odd count the middle value belongs to the second half.
    """
    if len(durations) < 2:
        raise ValueError("At least two durations are needed to classify a trend")

    middle = len(durations) // 2
    first_half = fmean(durations[:middle])
    second_half = fmean(durations[middle:])

    if second_half > first_half * (1 + band):
        return TrendDirection.DEGRADING
    if second_half < first_half * (1 - band):
        return TrendDirection.IMPROVING
    return TrendDirection.STABLE


def calculate_performance_trends(
    records: Sequence[TestExecution], band: float = TREND_BAND
) -> Mapping[str, PerformanceTrend]:
    """Trend per test name, for names recorded at least twice."""
    durations_by_name: dict[str, list[int]] = {}
    for record in records:
        durations_by_name.setdefault(record.name, []).append(record.duration_ms)

    return {
        name: PerformanceTrend(
            test_name=name,
            average_duration=fmean(durations),
            min_duration=min(durations),
            max_duration=max(durations),
            direction=classify_trend(durations, band),
        )
        for name, durations in durations_by_name.items()
        if len(durations) >= 2
    }


def analyze_failures(
    records: Sequence[TestExecution], limit: int = TOP_FAILING_LIMIT
) -> FailureAnalysis:
    """Failure rate per category, most failing tests and failures per date."""
    totals = Counter(record.category for record in records)
    failures = [record for record in records if not record.passed]
    failures_by_category = Counter(record.category for record in failures)

    failure_rate_by_category = {
        category: failures_by_category.get(category, 0) * 100.0 / count
        for category, count in totals.items()
    }

    # most_common() is stable, so equal counts keep first-seen order
    failing_counts = Counter(record.name for record in failures)

    failure_timeline = Counter(record.timestamp.date() for record in failures)

    return FailureAnalysis(
        failure_rate_by_category=failure_rate_by_category,
        most_failing_tests=dict(failing_counts.most_common(limit)),
        failure_timeline=dict(sorted(failure_timeline.items())),
    )


def calculate_stability(records: Sequence[TestExecution]) -> StabilityMetrics:
    """Flaky test names and the share of repeated tests with uniform outcomes.

    Only names recorded at least twice are considered. With no such names the
    consistency score is 100.
    """
    outcomes_by_name: dict[str, list[bool]] = {}
    for record in records:
        outcomes_by_name.setdefault(record.name, []).append(record.passed)

    repeated = {
        name: outcomes
        for name, outcomes in outcomes_by_name.items()
        if len(outcomes) >= 2
    }
    flaky = [name for name, outcomes in repeated.items() if len(set(outcomes)) > 1]

    if not repeated:
        consistency = 100.0
    else:
        consistency = (len(repeated) - len(flaky)) * 100.0 / len(repeated)

    return StabilityMetrics(flaky_tests=flaky, consistency_score=consistency)


def build_timeline(records: Sequence[TestExecution]) -> Sequence[TimelineEntry]:
    """One entry per calendar date, in ascending date order."""
    by_date: dict[date, list[TestExecution]] = {}
    for record in records:
        by_date.setdefault(record.timestamp.date(), []).append(record)

    timeline = []
    for day, executions in sorted(by_date.items()):
        passed = sum(1 for execution in executions if execution.passed)
        timeline.append(
            TimelineEntry(
                date=day,
                total_tests=len(executions),
                passed_tests=passed,
                failed_tests=len(executions) - passed,
                average_duration=fmean(e.duration_ms for e in executions),
            )
        )
    return timeline
