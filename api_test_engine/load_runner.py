"""Concurrent load generation and aggregation of timing samples.

A run starts a fixed number of logical users on a bounded worker pool. Each
user issues requests sequentially, either a fixed number of times or, in
endurance mode, until a time budget is spent. The runner waits for every user
before reducing samples into aggregate metrics. A failing request is recorded
as a failed sample and never aborts sibling work.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from statistics import fmean, median, quantiles

from pydantic import Field

from api_test_engine.models.base import Model
from api_test_engine.strategies import RequestIssuer

log = logging.getLogger(__name__)

STRESS_THRESHOLD_MS = 3000.0


class LoadProfile(Model):
    """Shape of a load run."""

    users: int = Field(..., ge=1, description="Number of concurrent logical users")
    requests_per_user: int = Field(default=1, ge=1)
    max_workers: int | None = Field(
        default=None, ge=1, description="Worker pool size (defaults to users)"
    )
    duration: float | None = Field(
        default=None, gt=0, description="Endurance budget per user in seconds"
    )
    request_interval: float = Field(
        default=0.0, ge=0, description="Pause between a user's requests in seconds"
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Per-user time limit in seconds"
    )


@dataclass(frozen=True, kw_only=True)
class Sample:
    """Timing and outcome of one request."""

    response_time: float
    status_code: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )


@dataclass(frozen=True, kw_only=True)
class UserSample:
    """Samples collected by one logical user."""

    user_id: int
    samples: Sequence[Sample] = ()
    cancelled: bool = False


@dataclass(frozen=True, kw_only=True)
class LoadMetrics:
    """Aggregate metrics of a load run. Times are in milliseconds."""

    users: int
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    throughput: float
    average_response_time: float
    median_response_time: float
    min_response_time: float
    max_response_time: float
    p95_response_time: float
    wall_clock_ms: float


@dataclass(frozen=True, kw_only=True)
class StressResult:
    """Metrics per user level and the largest level within the threshold."""

    levels: Sequence[LoadMetrics]
    optimal_users: int


def summarize(
    user_samples: Sequence[UserSample], wall_clock_ms: float, users: int
) -> LoadMetrics:
    """Reduce per-user samples into aggregate metrics."""
    samples = [sample for user in user_samples for sample in user.samples]
    times = [sample.response_time for sample in samples]
    total = len(samples)
    successful = sum(1 for sample in samples if sample.success)

    if len(times) >= 2:
        p95 = quantiles(times, n=20, method="inclusive")[-1]
    else:
        p95 = times[0] if times else 0.0

    return LoadMetrics(
        users=users,
        total_requests=total,
        successful_requests=successful,
        failed_requests=total - successful,
        success_rate=successful * 100.0 / total if total else 0.0,
        throughput=successful * 1000.0 / wall_clock_ms if wall_clock_ms > 0 else 0.0,
        average_response_time=fmean(times) if times else 0.0,
        median_response_time=median(times) if times else 0.0,
        min_response_time=min(times, default=0.0),
        max_response_time=max(times, default=0.0),
        p95_response_time=p95,
        wall_clock_ms=wall_clock_ms,
    )


@dataclass(frozen=True, kw_only=True)
class ConcurrentLoadRunner:
    """Runs load profiles against a request callback."""

    issue_request: RequestIssuer
    clock: Callable[[], float] = field(default=time.perf_counter, repr=False)

    async def run(self, profile: LoadProfile) -> LoadMetrics:
        """Run every user to completion and aggregate their samples."""
        workers = asyncio.Semaphore(profile.max_workers or profile.users)
        log.info(
            "Starting load run: users=%d requests_per_user=%d workers=%d duration=%s",
            profile.users,
            profile.requests_per_user,
            profile.max_workers or profile.users,
            profile.duration,
        )

        start = self.clock()
        user_samples = await asyncio.gather(
            *(
                self._run_user(user_id, profile, workers)
                for user_id in range(1, profile.users + 1)
            )
        )
        wall_clock_ms = (self.clock() - start) * 1000

        metrics = summarize(user_samples, wall_clock_ms, profile.users)
        log.info(
            "Load run finished: requests=%d success_rate=%.2f%% "
            "throughput=%.2f req/s avg=%.2fms",
            metrics.total_requests,
            metrics.success_rate,
            metrics.throughput,
            metrics.average_response_time,
        )
        return metrics

    async def run_stress(
        self,
        user_levels: Sequence[int],
        requests_per_user: int = 1,
        threshold_ms: float = STRESS_THRESHOLD_MS,
    ) -> StressResult:
        """Run the load at increasing user levels to find the optimal load point.

        The optimal point is the largest level whose average response time
        stays below ``threshold_ms``; the first level if none does.
        """
        if not user_levels:
            raise ValueError("At least one user level is required")

        levels = []
        for users in user_levels:
            levels.append(
                await self.run(
                    LoadProfile(users=users, requests_per_user=requests_per_user)
                )
            )

        within = [m.users for m in levels if m.average_response_time < threshold_ms]
        optimal = max(within) if within else levels[0].users
        log.info("Optimal load point: %d concurrent users", optimal)
        return StressResult(levels=levels, optimal_users=optimal)

    async def _run_user(
        self, user_id: int, profile: LoadProfile, workers: asyncio.Semaphore
    ) -> UserSample:
        samples: list[Sample] = []
        async with workers:
            try:
                async with asyncio.timeout(profile.timeout):
                    await self._user_loop(profile, samples)
            except TimeoutError:
                log.warning(
                    "User %d cancelled after %.1fs timeout", user_id, profile.timeout
                )
                samples.append(
                    Sample(
                        response_time=profile.timeout * 1000,
                        error=f"User timed out after {profile.timeout}s",
                    )
                )
                return UserSample(user_id=user_id, samples=samples, cancelled=True)
        return UserSample(user_id=user_id, samples=samples)

    async def _user_loop(self, profile: LoadProfile, samples: list[Sample]) -> None:
        if profile.duration is not None:
            deadline = self.clock() + profile.duration
            while self.clock() < deadline:
                samples.append(await self._timed_request())
                if profile.request_interval:
                    await asyncio.sleep(profile.request_interval)
            return

        for index in range(profile.requests_per_user):
            samples.append(await self._timed_request())
            if profile.request_interval and index < profile.requests_per_user - 1:
                await asyncio.sleep(profile.request_interval)

    async def _timed_request(self) -> Sample:
        start = self.clock()
        try:
            response = await self.issue_request()
        except Exception as e:
            log.debug("Request failed during load run", exc_info=e)
            return Sample(response_time=(self.clock() - start) * 1000, error=str(e))
        return Sample(
            response_time=(self.clock() - start) * 1000,
            status_code=response.status_code,
        )
