"""Tests for ExecutionRecorder."""

import threading
from datetime import datetime, timezone

from api_test_engine.models.execution import TestCategory
from api_test_engine.recorder import ExecutionRecorder
from api_test_engine.testing.factories import TestExecutionFactory


def test_records_in_append_order() -> None:
    """Records are returned in the order they were appended."""
    recorder = ExecutionRecorder()
    executions = [TestExecutionFactory.build(name=f"t{i}") for i in range(3)]

    for execution in executions:
        recorder.record(execution)

    assert recorder.all_records() == tuple(executions)
    assert len(recorder) == 3


def test_indices_track_durations_and_categories() -> None:
    """Duration and category indices are updated on every append."""
    recorder = ExecutionRecorder()
    recorder.record(TestExecutionFactory.build(name="login", duration_ms=50))
    recorder.record(
        TestExecutionFactory.build(
            name="login", duration_ms=70, category=TestCategory.PERFORMANCE
        )
    )
    recorder.record(TestExecutionFactory.build(name="logout", duration_ms=20))
    recorder.record(TestExecutionFactory.build(name="x", category="nightly"))

    assert recorder.durations_by_name() == {
        "login": (50, 70),
        "logout": (20,),
        "x": (100,),
    }
    assert recorder.count_by_category() == {
        "FUNCTIONAL": 2,
        "PERFORMANCE": 1,
        "nightly": 1,
    }


def test_indices_agree_with_records() -> None:
    """Indices match what the record snapshot implies."""
    recorder = ExecutionRecorder()
    for name, category, duration in [
        ("a", "SMOKE", 5),
        ("b", "SECURITY", 7),
        ("a", "SMOKE", 9),
    ]:
        recorder.record(
            TestExecutionFactory.build(name=name, category=category, duration_ms=duration)
        )

    records = recorder.all_records()
    assert recorder.durations_by_name() == {
        name: tuple(r.duration_ms for r in records if r.name == name)
        for name in ("a", "b")
    }
    assert recorder.count_by_category() == {
        category: sum(1 for r in records if r.category == category)
        for category in ("SMOKE", "SECURITY")
    }


def test_snapshot_does_not_see_later_records() -> None:
    """A snapshot is unaffected by later appends."""
    recorder = ExecutionRecorder()
    recorder.record(TestExecutionFactory.build())

    snapshot = recorder.all_records()
    recorder.record(TestExecutionFactory.build())

    assert len(snapshot) == 1
    assert len(recorder.all_records()) == 2


def test_record_outcome_stamps_current_time() -> None:
    """record_outcome builds an execution with a UTC timestamp."""
    recorder = ExecutionRecorder()
    before = datetime.now(timezone.utc)

    execution = recorder.record_outcome(
        "get user", "SMOKE", passed=False, duration_ms=42, metadata={"status": 500}
    )

    assert execution.timestamp >= before
    assert execution.metadata == {"status": 500}
    assert recorder.all_records() == (execution,)


def test_record_outcome_accepts_explicit_timestamp() -> None:
    """An explicit timestamp is kept."""
    recorder = ExecutionRecorder()
    stamp = datetime(2024, 3, 1, tzinfo=timezone.utc)

    execution = recorder.record_outcome("t", "SMOKE", True, 1, timestamp=stamp)

    assert execution.timestamp == stamp


def test_concurrent_records_keep_indices_consistent() -> None:
    """Appends from many threads are neither lost nor torn."""
    recorder = ExecutionRecorder()
    threads_count, per_thread = 8, 250

    def worker(thread_id: int) -> None:
        for i in range(per_thread):
            recorder.record(
                TestExecutionFactory.build(name=f"t{thread_id}", duration_ms=i)
            )

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    records = recorder.all_records()
    durations = recorder.durations_by_name()
    assert len(records) == threads_count * per_thread
    assert recorder.count_by_category() == {"FUNCTIONAL": threads_count * per_thread}
    for thread_id in range(threads_count):
        assert durations[f"t{thread_id}"] == tuple(range(per_thread))
