"""Models for API test suites loaded from YAML files."""

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import AliasChoices, ConfigDict, Field, model_validator

from api_test_engine.models.base import Model
from api_test_engine.validation import (
    ContentType,
    FieldEquals,
    JsonBody,
    ResponseTime,
    StatusCode,
    ValidationChain,
    Validator,
)


class SuiteModel(Model):
    """Suite file model; unknown keys are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class FieldCheck(SuiteModel):
    """Expected value at a JSON path."""

    path: str = Field(..., description="Path into the JSON body (e.g. 'data.id')")
    value: Any = Field(default=None, description="Expected value")


class ValidationStep(SuiteModel):
    """One link of a validation chain; exactly one check must be set."""

    status_code: int | None = None
    response_time: int | None = Field(default=None, ge=0, description="Max ms")
    content_type: str | None = None
    field_equals: FieldCheck | None = None
    json_body: Literal[True] | None = None

    @model_validator(mode="after")
    def _exactly_one_check(self) -> "ValidationStep":
        configured = [name for name, value in self if value is not None]
        if len(configured) != 1:
            raise ValueError(
                f"Validation step needs exactly one check, got {configured or 'none'}"
            )
        return self

    def to_validator(self) -> Validator:
        if self.status_code is not None:
            return StatusCode(self.status_code)
        if self.response_time is not None:
            return ResponseTime(self.response_time)
        if self.content_type is not None:
            return ContentType(self.content_type)
        if self.field_equals is not None:
            return FieldEquals(self.field_equals.path, self.field_equals.value)
        return JsonBody()


class ApiTestCase(SuiteModel):
    """A single request and how to judge its response."""

    __test__ = False

    name: str = Field(..., description="Human-readable test name")
    method: str = Field(default="GET", description="HTTP method")
    path: str = Field(..., description="Request path relative to the base URL")
    params: Mapping[str, str] = Field(default_factory=dict)
    payload: Any = Field(
        default=None,
        validation_alias=AliasChoices("json", "payload"),
        description="JSON request body, written as `json` in suite files",
    )
    headers: Mapping[str, str] = Field(default_factory=dict)
    strategy: str = Field(default="functional", description="Strategy tag")
    category: str | None = Field(
        default=None, description="Analytics category (defaults to the strategy)"
    )
    expected_fields: Sequence[str] = Field(default_factory=list)
    required_fields: Sequence[str] = Field(default_factory=list)
    max_response_time: int | None = Field(default=None, ge=0, description="Max ms")
    validations: Sequence[ValidationStep] = Field(default_factory=list)

    @property
    def resolved_category(self) -> str:
        return self.category or self.strategy.strip().upper()

    def build_chain(self) -> ValidationChain | None:
        """Chain of the configured validation steps, or None when there are none."""
        if not self.validations:
            return None
        return ValidationChain(step.to_validator() for step in self.validations)


class TestSuite(SuiteModel):
    """Complete suite loaded from a YAML file."""

    __test__ = False

    version: str = Field(..., description="Suite schema version")
    cases: Sequence[ApiTestCase] = Field(default_factory=list)
