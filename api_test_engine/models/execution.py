"""Models for recorded test executions."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class TestCategory(StrEnum):
    """Well-known execution categories; free-text categories are also accepted."""

    __test__ = False

    FUNCTIONAL = "FUNCTIONAL"
    PERFORMANCE = "PERFORMANCE"
    SECURITY = "SECURITY"
    CONTRACT = "CONTRACT"
    SMOKE = "SMOKE"


@dataclass(frozen=True, kw_only=True)
class TestExecution:
    """One recorded outcome of running a named test."""

    __test__ = False

    name: str
    category: str
    passed: bool
    duration_ms: int
    timestamp: datetime
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(
                f"duration_ms must be non-negative, got {self.duration_ms}"
            )
