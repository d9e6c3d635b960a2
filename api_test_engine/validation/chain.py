"""Ordered validation chain with stop-at-first-failure semantics."""

import logging
from collections.abc import Iterable, Sequence

from api_test_engine.models.response import ResponseFacts
from api_test_engine.validation.outcome import ValidationOutcome
from api_test_engine.validation.validators import Validator

log = logging.getLogger(__name__)


class ValidationChain:
    """Runs validators in link order and merges their outcomes.

    Evaluation stops at the first validator reporting a failure: validators
    linked after it are not run at all, so the merged outcome holds the
    messages of every validator up to and including the failing one.
    Strategy sub-validations, by contrast, always run every check.
    """

    def __init__(self, validators: Iterable[Validator] = ()) -> None:
        self._validators: list[Validator] = list(validators)

    @classmethod
    def of(cls, *validators: Validator) -> "ValidationChain":
        return cls(validators)

    @property
    def validators(self) -> Sequence[Validator]:
        return tuple(self._validators)

    def __len__(self) -> int:
        return len(self._validators)

    def link[V: Validator](self, validator: V) -> V:
        """Append a validator to the end of the chain and return it."""
        self._validators.append(validator)
        return validator

    def validate(self, response: ResponseFacts) -> ValidationOutcome:
        """Validate the response against each linked validator in order."""
        outcome = ValidationOutcome()
        for position, validator in enumerate(self._validators, start=1):
            local = _evaluate(validator, response)
            outcome = outcome.merged_with(local)
            if not local.valid:
                skipped = len(self._validators) - position
                if skipped:
                    log.info(
                        "Validation stopped at %s, skipping %d validator(s)",
                        type(validator).__name__,
                        skipped,
                    )
                break
        return outcome


def _evaluate(validator: Validator, response: ResponseFacts) -> ValidationOutcome:
    """Run one validator, converting any escaped error into a failure."""
    try:
        return validator.evaluate(response)
    except Exception as e:
        log.error("Validator %s raised", type(validator).__name__, exc_info=e)
        return ValidationOutcome.failed(f"{type(validator).__name__} error: {e}")
