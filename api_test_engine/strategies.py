"""Interchangeable test execution disciplines.

Each strategy issues the request through the caller-supplied callback, runs
its own sub-validations and returns a uniform ``TestResult``. Errors raised
while issuing or inspecting the request never escape ``execute``: they become
a single failing "Test execution" sub-validation.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

import psutil

from api_test_engine.models.response import ResponseFacts

log = logging.getLogger(__name__)

type RequestIssuer = Callable[[], Awaitable[ResponseFacts]]

DEFAULT_MAX_RESPONSE_TIME = 5000
DEFAULT_SECURITY_HEADERS = (
    "X-Content-Type-Options",
    "X-Frame-Options",
    "X-XSS-Protection",
)
DEFAULT_SENSITIVE_KEYWORDS = ("password", "secret", "token", "key")


class StrategyTag(StrEnum):
    """Available test disciplines."""

    FUNCTIONAL = "functional"
    PERFORMANCE = "performance"
    SECURITY = "security"
    CONTRACT = "contract"
    SMOKE = "smoke"


@dataclass(frozen=True, kw_only=True)
class StrategyContext:
    """Inputs for one strategy execution."""

    issue_request: RequestIssuer
    expected_fields: Sequence[str] = ()
    required_fields: Sequence[str] = ()
    max_response_time: int | None = None
    security_headers: Sequence[str] = DEFAULT_SECURITY_HEADERS
    sensitive_keywords: Sequence[str] = DEFAULT_SENSITIVE_KEYWORDS


@dataclass(frozen=True, kw_only=True)
class SubValidation:
    """One named check performed by a strategy."""

    name: str
    passed: bool
    message: str


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of executing a request under a strategy."""

    __test__ = False

    strategy: StrategyTag
    success: bool
    status_code: int = 0
    response_time: int = 0
    validations: Sequence[SubValidation] = ()
    response: ResponseFacts | None = None
    fallback_from: str | None = None
    attempts: int = 1

    @property
    def failed_validations(self) -> Sequence[SubValidation]:
        return [validation for validation in self.validations if not validation.passed]


@dataclass(frozen=True, kw_only=True)
class TestStrategy(ABC):
    """Base for test disciplines.

    ``fallback_from`` holds the requested tag when this strategy was chosen
    because the requested one is unknown.
    """

    __test__ = False

    tag = StrategyTag.FUNCTIONAL
    display_name = "Test Strategy"

    fallback_from: str | None = None

    async def execute(self, context: StrategyContext) -> TestResult:
        """Issue the request and evaluate this strategy's checks.

        Status code and response time are kept whenever a response arrived,
        even if a check then fails with an error.
        """
        log.info("Executing %s", self.display_name)
        try:
            response = await context.issue_request()
        except Exception as e:
            log.error("%s request failed", self.display_name, exc_info=e)
            return self._errored(e)

        try:
            validations = self.check(response, context)
        except Exception as e:
            log.error("%s checks failed", self.display_name, exc_info=e)
            return self._errored(e, response)

        return TestResult(
            strategy=self.tag,
            success=all(validation.passed for validation in validations),
            status_code=response.status_code,
            response_time=response.elapsed_ms,
            validations=validations,
            response=response,
            fallback_from=self.fallback_from,
        )

    def _errored(
        self, error: Exception, response: ResponseFacts | None = None
    ) -> TestResult:
        return TestResult(
            strategy=self.tag,
            success=False,
            status_code=response.status_code if response is not None else 0,
            response_time=response.elapsed_ms if response is not None else 0,
            validations=[
                SubValidation(
                    name="Test execution", passed=False, message=f"Exception: {error}"
                )
            ],
            response=response,
            fallback_from=self.fallback_from,
        )

    @abstractmethod
    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        """Run every sub-validation of this discipline against the response."""


@dataclass(frozen=True, kw_only=True)
class FunctionalStrategy(TestStrategy):
    """2xx status and every expected field present."""

    tag = StrategyTag.FUNCTIONAL
    display_name = "Functional Testing Strategy"

    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        status = response.status_code
        validations = [
            SubValidation(
                name="Status code validation",
                passed=200 <= status < 300,
                message=f"{'Success' if 200 <= status < 300 else 'Failed'}: {status}",
            )
        ]
        for field_path in context.expected_fields:
            validations.append(
                _field_presence(
                    response,
                    field_path,
                    name=f"Field existence: {field_path}",
                    found=lambda value: f"Found: {value!r}",
                    missing="Field not found",
                )
            )
        return validations


@dataclass(frozen=True, kw_only=True)
class PerformanceStrategy(TestStrategy):
    """Response time within budget, with an informational memory reading."""

    tag = StrategyTag.PERFORMANCE
    display_name = "Performance Testing Strategy"

    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        max_time = (
            context.max_response_time
            if context.max_response_time is not None
            else DEFAULT_MAX_RESPONSE_TIME
        )
        memory_mb = psutil.Process().memory_info().rss // (1024 * 1024)
        return [
            SubValidation(
                name="Response time",
                passed=response.elapsed_ms <= max_time,
                message=f"Response time: {response.elapsed_ms}ms (max: {max_time}ms)",
            ),
            SubValidation(
                name="Memory usage", passed=True, message=f"Memory used: {memory_mb}MB"
            ),
        ]


@dataclass(frozen=True, kw_only=True)
class SecurityStrategy(TestStrategy):
    """Security headers present and no sensitive keywords in the body."""

    tag = StrategyTag.SECURITY
    display_name = "Security Testing Strategy"

    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        validations = []
        for header in context.security_headers:
            present = response.header(header) is not None
            validations.append(
                SubValidation(
                    name=f"Security header: {header}",
                    passed=present,
                    message="Present" if present else "Missing",
                )
            )

        body = response.text.lower()
        for keyword in context.sensitive_keywords:
            exposed = keyword.lower() in body
            validations.append(
                SubValidation(
                    name=f"Sensitive data check: {keyword}",
                    passed=not exposed,
                    message="Potential exposure detected" if exposed else "Safe",
                )
            )
        return validations


@dataclass(frozen=True, kw_only=True)
class ContractStrategy(TestStrategy):
    """Every required field present."""

    tag = StrategyTag.CONTRACT
    display_name = "Contract Testing Strategy"

    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        # Schema validation is not performed; the entry keeps the result shape.
        validations = [
            SubValidation(
                name="Response schema", passed=True, message="Schema validation passed"
            )
        ]
        for field_path in context.required_fields:
            validations.append(
                _field_presence(
                    response,
                    field_path,
                    name=f"Required field: {field_path}",
                    found=lambda _: "Present",
                    missing="Missing",
                )
            )
        return validations


@dataclass(frozen=True, kw_only=True)
class SmokeStrategy(TestStrategy):
    """No server error and a body was received."""

    tag = StrategyTag.SMOKE
    display_name = "Smoke Testing Strategy"

    def check(
        self, response: ResponseFacts, context: StrategyContext
    ) -> Sequence[SubValidation]:
        received = response.body is not None
        return [
            SubValidation(
                name="Basic connectivity",
                passed=response.status_code < 500,
                message=f"Status code: {response.status_code}",
            ),
            SubValidation(
                name="Response received",
                passed=received,
                message="Response body present" if received else "No response body",
            ),
        ]


STRATEGIES: Mapping[StrategyTag, type[TestStrategy]] = {
    StrategyTag.FUNCTIONAL: FunctionalStrategy,
    StrategyTag.PERFORMANCE: PerformanceStrategy,
    StrategyTag.SECURITY: SecurityStrategy,
    StrategyTag.CONTRACT: ContractStrategy,
    StrategyTag.SMOKE: SmokeStrategy,
}


def select_strategy(tag: str | StrategyTag) -> TestStrategy:
    """Return the strategy for ``tag``, falling back to functional testing.

    Tags are matched case-insensitively. An unknown tag is logged and recorded
    on the returned strategy as ``fallback_from``.
    """
    try:
        strategy_tag = StrategyTag(str(tag).strip().lower())
    except ValueError:
        log.warning("Unknown test type: %s. Using functional strategy.", tag)
        return FunctionalStrategy(fallback_from=str(tag))
    return STRATEGIES[strategy_tag]()


def _field_presence(
    response: ResponseFacts,
    field_path: str,
    *,
    name: str,
    found: Callable[[object], str],
    missing: str,
) -> SubValidation:
    try:
        value = response.path(field_path)
    except Exception as e:
        return SubValidation(name=name, passed=False, message=f"Error: {e}")
    if value is None:
        return SubValidation(name=name, passed=False, message=missing)
    return SubValidation(name=name, passed=True, message=found(value))
