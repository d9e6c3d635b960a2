"""Integration tests running suites through the real client."""

import json
from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from api_test_engine.analytics import AnalyticsEngine
from api_test_engine.client import ApiClient
from api_test_engine.config import ClientConfig, RetryPolicy
from api_test_engine.models.report import TrendDirection
from api_test_engine.models.suite import TestSuite
from api_test_engine.orchestrator import SuiteOrchestrator
from api_test_engine.recorder import ExecutionRecorder
from api_test_engine.testing import payloads

API_BASE_URL = "http://api.test"

SUITE = TestSuite.model_validate(
    {
        "version": "1.0",
        "cases": [
            {
                "name": "list users",
                "path": "/api/users",
                "expected_fields": ["page", "data"],
                "validations": [
                    {"status_code": 200},
                    {"content_type": "application/json"},
                    {"field_equals": {"path": "data.size()", "value": 3}},
                ],
            },
            {
                "name": "security headers",
                "path": "/api/users",
                "strategy": "security",
            },
            {
                "name": "missing user",
                "path": "/api/users/23",
                "strategy": "smoke",
                "validations": [{"status_code": 404}],
            },
        ],
    }
)


@pytest.fixture
async def client(aioresponses: aioresponses_cls) -> AsyncGenerator[ApiClient, None]:
    async with ApiClient.from_config(ClientConfig(base_url=API_BASE_URL)) as impl:
        yield impl


async def test_suite_results_and_analytics(
    client: ApiClient, aioresponses: aioresponses_cls
) -> None:
    """Runs a mixed suite and derives a report from the recorded history."""
    aioresponses.get(
        f"{API_BASE_URL}/api/users",
        status=200,
        body=json.dumps(payloads.users_page()),
        content_type="application/json",
        headers=payloads.SECURITY_HEADERS,
        repeat=True,
    )
    aioresponses.get(f"{API_BASE_URL}/api/users/23", status=404, body="", repeat=True)
    recorder = ExecutionRecorder()
    orchestrator = SuiteOrchestrator(
        client=client, recorder=recorder, retry_policy=RetryPolicy(max_retries=0)
    )

    results = await orchestrator.run_suite(SUITE)

    assert [(r.case_name, r.status) for r in results] == [
        ("list users", "success"),
        ("security headers", "success"),
        ("missing user", "success"),
    ]

    report = AnalyticsEngine(recorder=recorder).generate_report()
    assert report.total_tests == 3
    assert report.pass_rate == 100.0
    assert report.category_breakdown == {"FUNCTIONAL": 1, "SECURITY": 1, "SMOKE": 1}
    assert report.performance_trends == {}


async def test_repeated_runs_build_history(
    client: ApiClient, aioresponses: aioresponses_cls
) -> None:
    """Running a suite repeatedly accumulates executions per test name."""
    aioresponses.get(
        f"{API_BASE_URL}/api/users",
        status=200,
        payload=payloads.users_page(),
        headers=payloads.SECURITY_HEADERS,
        repeat=True,
    )
    aioresponses.get(f"{API_BASE_URL}/api/users/23", status=404, body="", repeat=True)
    recorder = ExecutionRecorder()
    orchestrator = SuiteOrchestrator(client=client, recorder=recorder)

    for _ in range(3):
        await orchestrator.run_suite(SUITE)

    report = AnalyticsEngine(recorder=recorder).generate_report()
    assert report.total_tests == 9
    assert set(report.performance_trends) == {
        "list users",
        "security headers",
        "missing user",
    }
    assert all(
        trend.direction in set(TrendDirection)
        for trend in report.performance_trends.values()
    )
    assert report.stability_metrics.flaky_tests == []
    assert report.stability_metrics.consistency_score == 100.0
