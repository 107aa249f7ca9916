"""Paced sequential runner for rate-limited upstream calls.

The embedding service is called one item at a time with a fixed gap between
calls. ``PacedRunner`` makes that schedule explicit as a small state machine::

    pending → in_flight → delay → pending → … → done

There is never more than one call in flight, and no delay follows the last
item. The sleep function is injectable so tests can run without waiting.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class PaceState(str, enum.Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DELAY = "delay"
    DONE = "done"


@dataclass
class Outcome(Generic[T, R]):
    """Result of one paced call. Exactly one of ``value`` / ``error`` is set."""

    index: int
    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PacedRunner:
    """Run an async callable over items sequentially with a fixed inter-call delay.

    Args:
        delay:         Seconds to wait between two consecutive calls.
        sleep:         Awaitable sleep function (``asyncio.sleep`` by default).
        on_transition: Optional callback receiving every new :class:`PaceState`.
    """

    def __init__(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_transition: Callable[[PaceState], None] | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._sleep = sleep
        self._on_transition = on_transition
        self.state = PaceState.PENDING

    def _set(self, state: PaceState) -> None:
        self.state = state
        if self._on_transition is not None:
            self._on_transition(state)

    async def run(
        self,
        items: Sequence[T],
        call: Callable[[T], Awaitable[R]],
    ) -> AsyncIterator[Outcome[T, R]]:
        """Yield one :class:`Outcome` per item, in input order.

        Exceptions raised by *call* are captured in the outcome rather than
        propagated, so one failing item does not stop the run.
        """
        self.state = PaceState.PENDING
        last = len(items) - 1
        for index, item in enumerate(items):
            self._set(PaceState.IN_FLIGHT)
            try:
                outcome = Outcome(index=index, item=item, value=await call(item))
            except Exception as exc:
                outcome = Outcome(index=index, item=item, error=exc)
            yield outcome
            if index < last:
                self._set(PaceState.DELAY)
                if self.delay:
                    await self._sleep(self.delay)
                self._set(PaceState.PENDING)
        self._set(PaceState.DONE)
