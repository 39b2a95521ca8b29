import logging
from typing import Awaitable, Callable, Optional, TypeVar

from facetqa.actions.errors import InteractionFailure, is_transient

T = TypeVar("T")


class RetryBudget:
    """Remaining retry attempts for one logical operation."""

    def __init__(self, attempts_remaining: int):
        if attempts_remaining < 0:
            raise ValueError("attempts_remaining must be >= 0")
        self.attempts_remaining = attempts_remaining

    @property
    def exhausted(self) -> bool:
        return self.attempts_remaining <= 0

    def consume(self) -> None:
        self.attempts_remaining -= 1

    def __repr__(self) -> str:
        return f"RetryBudget(attempts_remaining={self.attempts_remaining})"


async def with_retry(
    budget: RetryBudget,
    operation: Callable[[], Awaitable[T]],
    recovery: Optional[Callable[[], Awaitable[None]]] = None,
    step: str = "",
    retry_on: Callable[[BaseException], bool] = is_transient,
) -> T:
    """Run ``operation`` until it succeeds or ``budget`` runs out.

    Failures accepted by ``retry_on`` consume one unit of the budget and trigger
    ``recovery`` before the next attempt, so an operation that never succeeds
    is invoked exactly ``attempts_remaining + 1`` times. Any other failure
    propagates unchanged.

    Args:
        budget: Budget owned by this invocation.
        operation: Zero-argument coroutine factory performing one attempt.
        recovery: Optional coroutine factory run between attempts, usually a page reload.
            Element handles held before it runs must be re-resolved.
        step: Human-readable step name used in logs and in the fatal error.
        retry_on: Predicate deciding whether a failure is retryable.

    Returns:
        Whatever the first successful attempt returned.

    Raises:
        InteractionFailure: The budget was exhausted by retryable failures.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if not retry_on(e):
                raise
            if budget.exhausted:
                logging.error(f"{step}: giving up after {attempt} attempt(s): {e}")
                raise InteractionFailure(step, e) from e
            budget.consume()
            logging.warning(
                f"{step}: attempt {attempt} failed ({type(e).__name__}), "
                f"retrying. Retries left: #{budget.attempts_remaining}"
            )

        if recovery is not None:
            try:
                await recovery()
            except Exception as e:
                if not is_transient(e):
                    raise
                logging.warning(f"{step}: recovery action failed, continuing with next attempt: {e}")
