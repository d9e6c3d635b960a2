"""Built-in response validators."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from api_test_engine.models.response import ResponseFacts
from api_test_engine.validation.outcome import ValidationOutcome

log = logging.getLogger(__name__)


class Validator(Protocol):
    """A single independent check applied to a response."""

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        """Check the response and report the outcome without raising."""
        ...


@dataclass(frozen=True)
class StatusCode:
    """Passes when the status code equals the expected one."""

    expected: int

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        actual = response.status_code
        if actual == self.expected:
            return ValidationOutcome.passed(f"Status code validation passed: {actual}")
        log.error(
            "Status code validation failed. Expected: %s, Actual: %s",
            self.expected,
            actual,
        )
        return ValidationOutcome.failed(
            f"Expected status code: {self.expected}, but got: {actual}"
        )


@dataclass(frozen=True)
class ResponseTime:
    """Passes when the response arrived within ``max_ms`` milliseconds."""

    max_ms: int

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        actual = response.elapsed_ms
        if actual <= self.max_ms:
            return ValidationOutcome.passed(
                f"Response time validation passed: {actual}ms"
            )
        log.error(
            "Response time validation failed. Expected: <= %sms, Actual: %sms",
            self.max_ms,
            actual,
        )
        return ValidationOutcome.failed(
            f"Response time exceeded. Expected: <= {self.max_ms}ms, "
            f"but got: {actual}ms"
        )


@dataclass(frozen=True)
class ContentType:
    """Passes when the content type contains ``expected`` (case-sensitive)."""

    expected: str

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        actual = response.content_type
        if actual is not None and self.expected in actual:
            return ValidationOutcome.passed(f"Content type validation passed: {actual}")
        log.error(
            "Content type validation failed. Expected: %s, Actual: %s",
            self.expected,
            actual,
        )
        return ValidationOutcome.failed(
            f"Expected content type to contain: {self.expected}, but got: {actual}"
        )


@dataclass(frozen=True)
class FieldEquals:
    """Passes when the value at ``path`` in the JSON body equals ``expected``."""

    path: str
    expected: Any

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        try:
            actual = response.path(self.path)
        except Exception as e:
            log.error("Field validation error for '%s'", self.path, exc_info=e)
            return ValidationOutcome.failed(
                f"Field validation error for '{self.path}': {e}"
            )

        if actual == self.expected:
            return ValidationOutcome.passed(
                f"Field validation passed for '{self.path}': {actual!r}"
            )
        log.error(
            "Field validation failed for '%s'. Expected: %r, Actual: %r",
            self.path,
            self.expected,
            actual,
        )
        return ValidationOutcome.failed(
            f"Field validation failed for '{self.path}'. "
            f"Expected: {self.expected!r}, Actual: {actual!r}"
        )


@dataclass(frozen=True)
class JsonBody:
    """Passes when the body parses as JSON."""

    def evaluate(self, response: ResponseFacts) -> ValidationOutcome:
        try:
            response.json()
        except ValueError as e:
            log.error("JSON body validation failed", exc_info=e)
            return ValidationOutcome.failed(f"JSON body validation failed: {e}")
        return ValidationOutcome.passed("JSON body validation passed")
