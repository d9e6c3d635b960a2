"""Result of validating a response."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ValidationOutcome:
    """Verdict plus ordered success and failure messages.

    An outcome is valid exactly when it carries no failure messages.
    """

    successes: Sequence[str] = ()
    failures: Sequence[str] = ()

    @property
    def valid(self) -> bool:
        return not self.failures

    @classmethod
    def passed(cls, message: str) -> "ValidationOutcome":
        return cls(successes=(message,))

    @classmethod
    def failed(cls, message: str) -> "ValidationOutcome":
        return cls(failures=(message,))

    def merged_with(self, other: "ValidationOutcome") -> "ValidationOutcome":
        """Concatenate messages of both outcomes, this one first."""
        return ValidationOutcome(
            successes=(*self.successes, *other.successes),
            failures=(*self.failures, *other.failures),
        )

    def __str__(self) -> str:
        lines = [f"Validation Result: {'PASSED' if self.valid else 'FAILED'}"]
        if self.successes:
            lines.append("Successes:")
            lines.extend(f"  ✓ {message}" for message in self.successes)
        if self.failures:
            lines.append("Failures:")
            lines.extend(f"  ✗ {message}" for message in self.failures)
        return "\n".join(lines)
