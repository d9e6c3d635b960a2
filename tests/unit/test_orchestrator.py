"""Tests for suite orchestrator."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from api_test_engine.client import ApiClient
from api_test_engine.config import RetryPolicy
from api_test_engine.models.response import ResponseFacts
from api_test_engine.models.suite import ApiTestCase
from api_test_engine.orchestrator import SuiteOrchestrator
from api_test_engine.recorder import ExecutionRecorder
from api_test_engine.testing import payloads
from api_test_engine.testing.factories import ApiTestCaseFactory, TestSuiteFactory

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def json_response(document: object, status: int = 200) -> ResponseFacts:
    return ResponseFacts.build(
        status,
        headers={"Content-Type": "application/json"},
        body=json.dumps(document),
        elapsed_ms=80,
    )


@pytest.fixture
def client_mock() -> Mock:
    """Create mock API client."""
    return Mock(spec=ApiClient)


@pytest.fixture
def recorder() -> ExecutionRecorder:
    return ExecutionRecorder()


@pytest.fixture
def orchestrator(client_mock: Mock, recorder: ExecutionRecorder) -> SuiteOrchestrator:
    """Create orchestrator with mock client and fixed clock."""
    return SuiteOrchestrator(
        client=client_mock,
        recorder=recorder,
        retry_policy=RetryPolicy(max_retries=0),
        now=lambda: NOW,
    )


async def test_returns_empty_when_no_cases(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """Returns empty list when the suite has no cases."""
    results = await orchestrator.run_suite(TestSuiteFactory.build())

    assert results == []
    client_mock.issuer.assert_not_called()
    assert len(recorder) == 0


async def test_runs_passing_case(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """Runs a functional case and records a passing execution."""
    client_mock.issuer.return_value = AsyncMock(
        return_value=json_response(payloads.users_page())
    )
    case = ApiTestCaseFactory.build(
        name="list users",
        params={"page": "1"},
        expected_fields=["page", "data"],
    )

    results = await orchestrator.run_suite(TestSuiteFactory.build(cases=[case]))

    assert len(results) == 1
    result = results[0]
    assert result.case_name == "list users"
    assert result.status == "success"
    assert result.category == "FUNCTIONAL"
    assert result.message is None
    client_mock.issuer.assert_called_once_with(
        "GET", "/api/users", params={"page": "1"}, json=None, headers=None
    )

    (execution,) = recorder.all_records()
    assert execution.name == "list users"
    assert execution.passed
    assert execution.duration_ms == 80
    assert execution.timestamp == NOW
    assert execution.metadata["status_code"] == 200
    assert execution.metadata["strategy"] == "functional"
    assert execution.metadata["attempts"] == 1
    assert execution.metadata["failed_checks"] == []


async def test_records_failed_checks(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """Failed strategy checks fail the case and are listed in the message."""
    client_mock.issuer.return_value = AsyncMock(return_value=json_response({}))
    case = ApiTestCaseFactory.build(
        name="contract", strategy="contract", required_fields=["id"]
    )

    (result,) = await orchestrator.run_suite(TestSuiteFactory.build(cases=[case]))

    assert result.status == "failure"
    assert result.category == "CONTRACT"
    assert result.message == "Required field: id"
    assert not recorder.all_records()[0].passed


async def test_validation_chain_applies_after_strategy(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
) -> None:
    """A passing strategy still fails the case when its chain fails."""
    client_mock.issuer.return_value = AsyncMock(
        return_value=json_response({"data": payloads.user(user_id=3)})
    )
    case = ApiTestCase.model_validate(
        {
            "name": "get user",
            "path": "/api/users/2",
            "validations": [
                {"status_code": 200},
                {"field_equals": {"path": "data.id", "value": 2}},
                {"json_body": True},
            ],
        }
    )

    result = await orchestrator.run_case(case)

    assert result.result is not None
    assert result.result.success
    assert not result.passed
    assert result.chain_outcome is not None
    assert len(result.chain_outcome.successes) == 1
    assert result.chain_outcome.failures == (
        "Field validation failed for 'data.id'. Expected: 2, Actual: 3",
    )


async def test_chain_fails_without_response(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
) -> None:
    """A transport error leaves nothing for the chain to validate."""
    client_mock.issuer.return_value = AsyncMock(side_effect=ConnectionError("refused"))
    case = ApiTestCase.model_validate(
        {"name": "down", "path": "/", "validations": [{"status_code": 200}]}
    )

    result = await orchestrator.run_case(case)

    assert not result.passed
    assert result.chain_outcome is not None
    assert result.chain_outcome.failures == ("No response to validate",)
    assert result.message == "Test execution; No response to validate"


async def test_unknown_strategy_falls_back_to_functional(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """Unknown strategy tags run as functional and the fallback is recorded."""
    client_mock.issuer.return_value = AsyncMock(return_value=json_response({}))
    case = ApiTestCaseFactory.build(strategy="chaos")

    (result,) = await orchestrator.run_suite(TestSuiteFactory.build(cases=[case]))

    assert result.passed
    assert result.category == "CHAOS"
    metadata = recorder.all_records()[0].metadata
    assert metadata["strategy"] == "functional"
    assert metadata["fallback_from"] == "chaos"


async def test_retries_with_policy(
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """Cases are retried according to the retry policy."""
    issue = AsyncMock(side_effect=[json_response({}, 503), json_response({})])
    client_mock.issuer.return_value = issue
    orchestrator = SuiteOrchestrator(
        client=client_mock, recorder=recorder, retry_policy=RetryPolicy(max_retries=2)
    )

    result = await orchestrator.run_case(ApiTestCaseFactory.build(strategy="smoke"))

    assert result.passed
    assert result.result is not None
    assert result.result.attempts == 2
    assert recorder.all_records()[0].metadata["attempts"] == 2


async def test_handles_unexpected_exception(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
    recorder: ExecutionRecorder,
) -> None:
    """An error outside the strategy is reported without stopping other cases."""
    client_mock.issuer.side_effect = [
        RuntimeError("bad request definition"),
        AsyncMock(return_value=json_response({})),
    ]
    cases = [
        ApiTestCaseFactory.build(name="broken"),
        ApiTestCaseFactory.build(name="fine"),
    ]

    results = await orchestrator.run_suite(TestSuiteFactory.build(cases=cases))

    assert [r.status for r in results] == ["error", "success"]
    assert results[0].message == "bad request definition"
    records = {record.name: record for record in recorder.all_records()}
    assert not records["broken"].passed
    assert records["broken"].metadata == {"error": "bad request definition"}
    assert records["fine"].passed


async def test_sends_request_body_from_suite(
    orchestrator: SuiteOrchestrator,
    client_mock: Mock,
) -> None:
    """The case's ``json`` body is passed to the request."""
    client_mock.issuer.return_value = AsyncMock(return_value=json_response({}, 201))
    case = ApiTestCase.model_validate(
        {
            "name": "create",
            "method": "POST",
            "path": "/api/users",
            "json": {"name": "neo"},
        }
    )

    await orchestrator.run_case(case)

    client_mock.issuer.assert_called_once_with(
        "POST", "/api/users", params=None, json={"name": "neo"}, headers=None
    )
