"""Suite orchestrator coordinating strategy execution and recording."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from api_test_engine.client import ApiClient
from api_test_engine.config import RetryPolicy
from api_test_engine.models.execution import TestExecution
from api_test_engine.models.suite import ApiTestCase, TestSuite
from api_test_engine.recorder import ExecutionRecorder
from api_test_engine.retry import run_with_retry
from api_test_engine.strategies import StrategyContext, TestResult, select_strategy
from api_test_engine.validation import ValidationOutcome

log = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class CaseResult:
    """Result container for one suite case."""

    case_name: str
    category: str
    passed: bool
    result: TestResult | None = None
    chain_outcome: ValidationOutcome | None = None
    message: str | None = None

    @property
    def status(self) -> str:
        if self.result is None:
            return "error"
        return "success" if self.passed else "failure"


@dataclass(frozen=True, kw_only=True)
class SuiteOrchestrator:
    """Runs suite cases through their strategies and records the executions."""

    client: ApiClient
    recorder: ExecutionRecorder
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    now: Callable[[], datetime] = field(default=utc_now, repr=False)

    async def run_suite(self, suite: TestSuite) -> Sequence[CaseResult]:
        """Run all cases concurrently.

        Args:
            suite: Suite to execute

        Returns:
            One case result per suite case, in suite order

        """
        if not suite.cases:
            log.info("No test cases provided")
            return []

        log.info("Running %d test case(s)...", len(suite.cases))
        results = await asyncio.gather(
            *(self.run_case(case) for case in suite.cases), return_exceptions=True
        )
        log.info("Test execution completed")

        return self._process_results(suite.cases, results)

    async def run_case(self, case: ApiTestCase) -> CaseResult:
        """Run one case with retries, apply its validation chain and record it."""
        strategy = select_strategy(case.strategy)
        context = StrategyContext(
            issue_request=self.client.issuer(
                case.method,
                case.path,
                params=dict(case.params) or None,
                json=case.payload,
                headers=dict(case.headers) or None,
            ),
            expected_fields=case.expected_fields,
            required_fields=case.required_fields,
            max_response_time=case.max_response_time,
        )
        result = await run_with_retry(strategy, context, self.retry_policy)

        chain_outcome = None
        chain = case.build_chain()
        if chain is not None and result.response is not None:
            chain_outcome = chain.validate(result.response)
        elif chain is not None:
            chain_outcome = ValidationOutcome.failed("No response to validate")

        passed = result.success and (chain_outcome is None or chain_outcome.valid)
        failed_checks = [v.name for v in result.failed_validations]
        if chain_outcome is not None:
            failed_checks.extend(chain_outcome.failures)

        self.recorder.record(
            TestExecution(
                name=case.name,
                category=case.resolved_category,
                passed=passed,
                duration_ms=result.response_time,
                timestamp=self.now(),
                metadata={
                    "status_code": result.status_code,
                    "strategy": str(result.strategy),
                    "attempts": result.attempts,
                    "failed_checks": failed_checks,
                    "fallback_from": result.fallback_from,
                },
            )
        )

        return CaseResult(
            case_name=case.name,
            category=case.resolved_category,
            passed=passed,
            result=result,
            chain_outcome=chain_outcome,
            message="; ".join(failed_checks) or None,
        )

    def _process_results(
        self,
        cases: Sequence[ApiTestCase],
        results: Sequence[CaseResult | BaseException],
    ) -> Sequence[CaseResult]:
        """Process results from case execution, handling exceptions."""
        final_results: list[CaseResult] = []

        for case, result in zip(cases, results, strict=True):
            if isinstance(result, CaseResult):
                log.info(
                    "Case completed: name=%s status=%s attempts=%d",
                    result.case_name,
                    result.status,
                    result.result.attempts if result.result else 0,
                )
                final_results.append(result)
            elif isinstance(result, Exception):
                log.error("Case %s failed: %s", case.name, result, exc_info=result)
                self.recorder.record(
                    TestExecution(
                        name=case.name,
                        category=case.resolved_category,
                        passed=False,
                        duration_ms=0,
                        timestamp=self.now(),
                        metadata={"error": str(result)},
                    )
                )
                final_results.append(
                    CaseResult(
                        case_name=case.name,
                        category=case.resolved_category,
                        passed=False,
                        message=str(result),
                    )
                )
            else:
                raise result

        return final_results
