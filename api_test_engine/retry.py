"""Bounded retry of unsuccessful strategy executions."""

import asyncio
import dataclasses
import logging

from api_test_engine.config import RetryPolicy
from api_test_engine.strategies import StrategyContext, TestResult, TestStrategy

log = logging.getLogger(__name__)


async def run_with_retry(
    strategy: TestStrategy,
    context: StrategyContext,
    policy: RetryPolicy | None = None,
) -> TestResult:
    """Execute a strategy, retrying up to ``policy.max_retries`` times on failure.

    Returns:
        The last result, with ``attempts`` set to the number of executions

    """
    policy = policy or RetryPolicy()
    result = await strategy.execute(context)
    attempts = 1

    while not result.success and attempts <= policy.max_retries:
        failed = ", ".join(v.name for v in result.failed_validations) or "unknown"
        log.warning(
            "Retrying %s - Attempt %d of %d (failed: %s)",
            strategy.display_name,
            attempts,
            policy.max_retries,
            failed,
        )
        if policy.delay:
            await asyncio.sleep(policy.delay)
        result = await strategy.execute(context)
        attempts += 1

    if not result.success and policy.max_retries:
        log.error(
            "%s failed after %d attempt(s)", strategy.display_name, attempts
        )

    return dataclasses.replace(result, attempts=attempts)
