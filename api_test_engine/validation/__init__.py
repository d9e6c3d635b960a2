"""Response validation chain and built-in validators."""

from api_test_engine.validation.chain import ValidationChain
from api_test_engine.validation.outcome import ValidationOutcome
from api_test_engine.validation.validators import (
    ContentType,
    FieldEquals,
    JsonBody,
    ResponseTime,
    StatusCode,
    Validator,
)

__all__ = [
    "ContentType",
    "FieldEquals",
    "JsonBody",
    "ResponseTime",
    "StatusCode",
    "ValidationChain",
    "ValidationOutcome",
    "Validator",
]
