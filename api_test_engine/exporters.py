"""Write analytics reports as JSON or as an HTML dashboard."""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from html import escape
from pathlib import Path
from typing import Any

from api_test_engine.models.report import PerformanceTrend, Report

log = logging.getLogger(__name__)

_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
    .container { max-width: 1200px; margin: 0 auto; }
    .card { background: white; padding: 20px; margin: 20px 0; border-radius: 8px; }
    .metric { display: inline-block; margin: 10px 20px; text-align: center; }
    .metric-value { font-size: 2em; font-weight: bold; color: #2196F3; }
    .metric-label { font-size: 0.9em; color: #666; }
    .pass { color: #4CAF50; }
    .fail { color: #F44336; }
    .warning { color: #FF9800; }
    table { width: 100%; border-collapse: collapse; margin: 10px 0; }
    th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background-color: #f2f2f2; }
"""


def report_to_dict(report: Report) -> dict[str, Any]:
    """Serialize a report with the dashboard's camelCase keys."""
    return report.model_dump(mode="json", by_alias=True)


def export_json(report: Report, path: Path) -> Path:
    """Write the report as pretty-printed JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report_to_dict(report), indent=2))
    log.info("Analytics report exported to: %s", path)
    return path


def export_html(
    report: Report, path: Path, generated_at: datetime | None = None
) -> Path:
    """Write the report as a self-contained HTML dashboard."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(report, generated_at))
    log.info("HTML dashboard exported to: %s", path)
    return path


def render_html(report: Report, generated_at: datetime | None = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    stability = report.stability_metrics
    consistency_class = "pass" if stability.consistency_score >= 90 else "warning"

    return f"""<!DOCTYPE html>
<html>
<head>
<title>API Test Analytics Dashboard</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
<h1>API Test Analytics Dashboard</h1>
<p>Generated on: {generated_at:%Y-%m-%d %H:%M:%S}</p>
<div class="card">
<h2>Test Execution Summary</h2>
{_metric(str(report.total_tests), "Total Tests")}
{_metric(str(report.passed_tests), "Passed", "pass")}
{_metric(str(report.failed_tests), "Failed", "fail")}
{_metric(f"{report.pass_rate:.1f}%", "Pass Rate")}
{_metric(f"{report.average_execution_time:.0f}ms", "Avg Duration")}
</div>
<div class="card">
<h2>Test Categories</h2>
<table>
<tr><th>Category</th><th>Count</th><th>Percentage</th></tr>
{_category_rows(report.category_breakdown, report.total_tests)}
</table>
</div>
<div class="card">
<h2>Stability Metrics</h2>
{_metric(f"{stability.consistency_score:.1f}%", "Consistency Score", consistency_class)}
{_metric(str(len(stability.flaky_tests)), "Flaky Tests", "warning")}
</div>
<div class="card">
<h2>Performance Trends</h2>
<table>
<tr><th>Test</th><th>Avg Duration</th><th>Min</th><th>Max</th><th>Trend</th></tr>
{_trend_rows(report.performance_trends)}
</table>
</div>
</div>
</body>
</html>
"""


def _metric(value: str, label: str, css_class: str = "") -> str:
    return (
        f'<div class="metric"><div class="metric-value {css_class}">{escape(value)}'
        f'</div><div class="metric-label">{escape(label)}</div></div>'
    )


def _category_rows(categories: Mapping[str, int], total: int) -> str:
    return "\n".join(
        f"<tr><td>{escape(category)}</td><td>{count}</td>"
        f"<td>{count * 100.0 / total if total else 0.0:.1f}%</td></tr>"
        for category, count in categories.items()
    )


def _trend_rows(trends: Mapping[str, PerformanceTrend]) -> str:
    return "\n".join(
        f"<tr><td>{escape(trend.test_name)}</td>"
        f"<td>{trend.average_duration:.0f}ms</td>"
        f"<td>{trend.min_duration:.0f}ms</td>"
        f"<td>{trend.max_duration:.0f}ms</td>"
        f"<td>{trend.direction}</td></tr>"
        for trend in trends.values()
    )
