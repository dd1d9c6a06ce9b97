"""
Retry policy for page fetches.

Linear backoff with a fixed ceiling per failing fetch point. The counter is
scoped to one cursor position: a successful fetch starts a fresh scope.
"""

from dataclasses import dataclass
from enum import Enum

from tenacity import RetryCallState


class RetryAction(str, Enum):
    RETRY = "retry"
    GIVE_UP = "give_up"


@dataclass(frozen=True)
class RetryDecision:
    action: RetryAction
    delay_ms: int = 0

    @property
    def should_retry(self) -> bool:
        return self.action is RetryAction.RETRY


class RetryPolicy:
    """
    Decide whether to retry after the Nth consecutive transport failure.

    attempt 1 -> retry after 3000ms, 2 -> 6000ms, 3 -> 9000ms, 4 -> give up.

    `stop` and `wait` adapt the same decision to tenacity's callback
    signatures so the driver can run fetches under `AsyncRetrying`.
    """

    def __init__(self, max_retries: int = 3, base_delay_ms: int = 3000):
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms

    def on_failure(self, attempt: int) -> RetryDecision:
        """
        Args:
            attempt: 1-based count of consecutive failures at this cursor

        Returns:
            RETRY with the backoff delay, or GIVE_UP past the ceiling
        """
        if attempt > self.max_retries:
            return RetryDecision(RetryAction.GIVE_UP)
        return RetryDecision(RetryAction.RETRY, self.base_delay_ms * attempt)

    def stop(self, retry_state: RetryCallState) -> bool:
        return not self.on_failure(retry_state.attempt_number).should_retry

    def wait(self, retry_state: RetryCallState) -> float:
        return self.on_failure(retry_state.attempt_number).delay_ms / 1000
