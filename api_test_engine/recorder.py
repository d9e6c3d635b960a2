"""Append-only store of test executions."""

import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from api_test_engine.models.execution import TestExecution

log = logging.getLogger(__name__)


class ExecutionRecorder:
    """Thread-safe, append-only history of test executions.

    Alongside the ordered records it keeps two indices, durations per test
    name and counts per category, updated under the same lock as the append.
    The indices always agree with ``all_records()``. They answer per-name and
    per-category lookups without copying the history. Analytics reports are
    derived from a single ``all_records()`` snapshot instead.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[TestExecution] = []
        self._durations_by_name: dict[str, list[int]] = {}
        self._count_by_category: dict[str, int] = {}

    def record(self, execution: TestExecution) -> None:
        """Append an execution and update the indices."""
        with self._lock:
            self._records.append(execution)
            self._durations_by_name.setdefault(execution.name, []).append(
                execution.duration_ms
            )
            self._count_by_category[execution.category] = (
                self._count_by_category.get(execution.category, 0) + 1
            )
        log.info(
            "Recorded test execution: %s - %s - %s",
            execution.name,
            execution.category,
            "PASSED" if execution.passed else "FAILED",
        )

    def record_outcome(
        self,
        name: str,
        category: str,
        passed: bool,
        duration_ms: int,
        metadata: Mapping[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> TestExecution:
        """Build an execution stamped with the current UTC time and record it."""
        execution = TestExecution(
            name=name,
            category=category,
            passed=passed,
            duration_ms=duration_ms,
            timestamp=timestamp or datetime.now(timezone.utc),
            metadata=dict(metadata or {}),
        )
        self.record(execution)
        return execution

    def all_records(self) -> Sequence[TestExecution]:
        """Return a snapshot of every record in append order."""
        with self._lock:
            return tuple(self._records)

    def durations_by_name(self) -> Mapping[str, Sequence[int]]:
        with self._lock:
            return {
                name: tuple(durations)
                for name, durations in self._durations_by_name.items()
            }

    def count_by_category(self) -> Mapping[str, int]:
        with self._lock:
            return dict(self._count_by_category)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
