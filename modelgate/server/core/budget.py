"""Cancellation/timeout budget shared across one gateway invocation.

One budget governs a whole connection test or discovery call, including any
internal sub-calls an adapter makes. Cancellation is cooperative: adapters call
``check()`` before each outbound request and size their HTTP timeouts from
``remaining()``, while ``run()`` tears the whole operation down once the
deadline passes or ``cancel()`` is called.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from modelgate.exceptions import BudgetExhausted

DEFAULT_TIMEOUT_SECONDS = 15.0

T = TypeVar("T")


class CancellationBudget:
    """Deadline plus explicit cancellation for a single invocation.

    The clock starts when the budget is created.

    Usage:
        budget = CancellationBudget(timeout=15.0)
        details = await budget.run(adapter.test_connection(endpoint, key, budget))
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._deadline = time.monotonic() + timeout
        self._cancel_event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self.cancelled or self.remaining() <= 0

    def remaining(self) -> float:
        """Seconds left before the deadline (never negative)."""
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Fire the budget; in-flight work under ``run()`` is torn down."""
        self._cancel_event.set()

    def check(self) -> None:
        """Raise BudgetExhausted if the budget has fired."""
        if self.cancelled:
            raise BudgetExhausted("Operation was cancelled", cancelled=True)
        if self.remaining() <= 0:
            raise BudgetExhausted(f"Operation timed out after {self.timeout:g} seconds")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` within the budget.

        Raises:
            BudgetExhausted: The deadline passed or ``cancel()`` was called
                before the awaitable finished. The awaitable is cancelled and
                awaited before this is raised, so no sub-call keeps running.
        """
        try:
            self.check()
        except BudgetExhausted:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        task = asyncio.ensure_future(awaitable)
        cancel_waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, cancel_waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            if task in done:
                return task.result()
        finally:
            cancel_waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        self.check()
        raise BudgetExhausted(f"Operation timed out after {self.timeout:g} seconds")
