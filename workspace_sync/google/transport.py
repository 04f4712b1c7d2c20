"""httpx transport that retries transient network faults.

The Admin API calls made by this package perform no retry of their own, so a
connection dropped mid-request would otherwise surface directly as a sync
failure. :class:`RetryingTransport` sits between ``httpx.AsyncClient`` and the
real network transport and replays such requests with exponential backoff,
scheduled by ``tenacity``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import random
import typing as typ

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from workspace_sync.logging import get_logger, log_warning

from .faults import is_transient

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from tenacity import RetryCallState

    type SleepFn = cabc.Callable[[float], cabc.Awaitable[None]]
    type JitterFn = cabc.Callable[[float, float], float]

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class RetryConfig:
    """Retry budget and backoff base for transient faults."""

    max_retries: int = 3
    base_delay_s: float = 0.5

    def delay_for(self, attempt: int, jitter: JitterFn) -> float:
        """Return ``base * 2**attempt`` plus up to half of that again."""
        backoff = self.base_delay_s * (2**attempt)
        return backoff + jitter(0.0, backoff / 2)


def _is_replayable(request: httpx.Request) -> bool:
    # Streaming bodies can only be read once; in-memory bodies can be resent.
    return isinstance(request.stream, httpx.ByteStream)


def _is_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class RetryingTransport(httpx.AsyncBaseTransport):
    """Wrap a transport and retry requests that fail with transient faults.

    Successful responses (of any HTTP status) are returned immediately. A
    request is retried only when the failure is transient, the current task is
    not being cancelled and the request body can be replayed. Cancellation
    during the backoff sleep propagates at once.
    """

    def __init__(
        self,
        base: httpx.AsyncBaseTransport | None = None,
        *,
        config: RetryConfig | None = None,
        sleep: SleepFn | None = None,
        jitter: JitterFn | None = None,
    ) -> None:
        """Wrap ``base`` (a fresh ``httpx.AsyncHTTPTransport`` by default)."""
        self._base = base or httpx.AsyncHTTPTransport()
        self._config = config or RetryConfig()
        self._sleep = sleep or asyncio.sleep
        self._jitter = jitter or random.uniform

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send the request, retrying transient faults within the budget."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._config.max_retries + 1),
            retry=retry_if_exception(lambda exc: _should_retry(request, exc)),
            wait=self._delay,
            before_sleep=lambda state: _log_retry(request, state, self._config),
            sleep=self._sleep,
            reraise=True,
        )
        return await retrying(self._base.handle_async_request, request)

    def _delay(self, state: RetryCallState) -> float:
        return self._config.delay_for(state.attempt_number - 1, self._jitter)

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._base.aclose()


def _should_retry(request: httpx.Request, exc: BaseException) -> bool:
    return is_transient(exc) and not _is_cancelling() and _is_replayable(request)


def _log_retry(
    request: httpx.Request, state: RetryCallState, config: RetryConfig
) -> None:
    exc = state.outcome.exception() if state.outcome else None
    delay = state.next_action.sleep if state.next_action else 0.0
    log_warning(
        logger,
        "retrying request after transient error: %s "
        "(attempt=%d max_retries=%d method=%s url=%s delay_s=%.3f)",
        exc,
        state.attempt_number,
        config.max_retries,
        request.method,
        request.url,
        delay,
    )
