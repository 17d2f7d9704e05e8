# src/pipeline/runner.py — v2
"""Bounded whole-pass retry.

A pass is re-invoked while the previous one reported failure, up to a
fixed number of attempts. Each pass only redoes what the progress
document still lacks, so a retry costs as much as the remaining work.
Exhausting the bound returns an outcome listing what is left; it never
raises and never loops forever.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from batchmint.pipeline.models import ReconcileResult, RetryOutcome, UploadPassResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100

PassResult = TypeVar("PassResult", UploadPassResult, ReconcileResult)


def _remaining(result: UploadPassResult | ReconcileResult) -> list[str]:
    if isinstance(result, UploadPassResult):
        return list(result.failed)
    return list(result.failed_ranges)


async def run_with_retry(
    pass_fn: Callable[[], Awaitable[PassResult]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    phase: str = "upload",
    delay_s: float = 0.0,
) -> RetryOutcome:
    """Re-run pass_fn until it reports success or attempts run out.

    Args:
        pass_fn: Coroutine factory running one full pass.
        max_attempts: Upper bound on passes (>= 1).
        phase: Phase name used in log lines.
        delay_s: Pause between passes.

    Returns:
        RetryOutcome with the number of passes and the items still failing.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    remaining: list[str] = []
    for attempt in range(1, max_attempts + 1):
        result = await pass_fn()
        if result.successful:
            if attempt > 1:
                logger.info("%s succeeded on attempt %d", phase, attempt)
            return RetryOutcome(succeeded=True, attempts=attempt)

        remaining = _remaining(result)
        if attempt < max_attempts:
            logger.warning(
                "%s was not successful (attempt %d/%d, %d remaining), rerunning",
                phase, attempt, max_attempts, len(remaining),
            )
            if delay_s:
                await asyncio.sleep(delay_s)

    logger.error(
        "%s still incomplete after %d attempts: %s",
        phase, max_attempts, ", ".join(remaining) or "unknown",
    )
    return RetryOutcome(succeeded=False, attempts=max_attempts, remaining=remaining)
