"""Bounded collection of future gateway events.

A collector is registered with an ``EventCollectorHub`` before the awaited
event can happen and yields matching events until its limit is reached, its
deadline passes, its cancel event is set, or it is closed. Running out of
time is not an error: iteration simply ends, so callers check whether they
received anything.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

EventPredicate = Callable[[dict[str, Any]], bool]


@dataclass(frozen=True)
class CollectedEvent:
    event_type: str
    payload: dict[str, Any]


class EventCollector:
    def __init__(
        self,
        hub: "EventCollectorHub",
        *,
        event_type: str,
        predicate: EventPredicate,
        limit: int = 0,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be >= 0")
        self._hub = hub
        self._event_type = event_type
        self._predicate = predicate
        self._limit = limit
        self._cancel_event = cancel_event
        self._pending: deque[CollectedEvent] = deque()
        self._wakeup = asyncio.Event()
        self._closed_event = asyncio.Event()
        self._accepted = 0
        self._yielded = 0
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._deadline = loop.time() + timeout if timeout is not None else None

    @property
    def closed(self) -> bool:
        return self._closed_event.is_set()

    def offer(self, event_type: str, payload: dict[str, Any]) -> bool:
        """Queue ``payload`` if this collector wants it; returns whether it did."""
        if self.closed or event_type != self._event_type:
            return False
        if self._limit and self._accepted >= self._limit:
            return False
        if self._deadline is not None and self._loop.time() >= self._deadline:
            return False
        try:
            matched = self._predicate(payload)
        except Exception as exc:
            logger.warning("Collector predicate raised for %s: %s", event_type, exc)
            return False
        if not matched:
            return False
        self._accepted += 1
        self._pending.append(CollectedEvent(event_type=event_type, payload=payload))
        self._wakeup.set()
        return True

    def close(self) -> None:
        if self.closed:
            return
        self._closed_event.set()
        self._hub._unregister(self)

    def _remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(self._deadline - self._loop.time(), 0.0)

    def _take(self) -> CollectedEvent:
        event = self._pending.popleft()
        self._yielded += 1
        if self._limit and self._yielded >= self._limit:
            self.close()
        return event

    def __aiter__(self) -> "EventCollector":
        return self

    async def __anext__(self) -> CollectedEvent:
        while True:
            if self._cancel_event is not None and self._cancel_event.is_set():
                self.close()
                raise StopAsyncIteration
            if self.closed:
                raise StopAsyncIteration
            if self._pending:
                return self._take()
            remaining = self._remaining()
            if remaining is not None and remaining <= 0:
                self.close()
                raise StopAsyncIteration
            self._wakeup.clear()
            await self._wait_for_wakeup(remaining)

    async def _wait_for_wakeup(self, remaining: Optional[float]) -> None:
        waiters: list[asyncio.Future[Any]] = [
            asyncio.ensure_future(self._wakeup.wait()),
            asyncio.ensure_future(self._closed_event.wait()),
        ]
        if self._cancel_event is not None:
            waiters.append(asyncio.ensure_future(self._cancel_event.wait()))
        try:
            await asyncio.wait(
                waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

    async def first(self) -> Optional[CollectedEvent]:
        """The next matching event, or ``None`` once the collector is exhausted."""
        try:
            async for event in self:
                return event
            return None
        finally:
            self.close()

    async def collect(self) -> list[CollectedEvent]:
        events: list[CollectedEvent] = []
        try:
            async for event in self:
                events.append(event)
        finally:
            self.close()
        return events

    async def __aenter__(self) -> "EventCollector":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        self.close()


class EventCollectorHub:
    """Fan-out point between the gateway and every live collector."""

    def __init__(self) -> None:
        self._collectors: list[EventCollector] = []

    @property
    def active_count(self) -> int:
        return len(self._collectors)

    def collect(
        self,
        event_type: str,
        predicate: EventPredicate,
        *,
        limit: int = 0,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EventCollector:
        collector = EventCollector(
            self,
            event_type=event_type,
            predicate=predicate,
            limit=limit,
            timeout=timeout,
            cancel_event=cancel_event,
        )
        self._collectors.append(collector)
        return collector

    def publish(self, event_type: str, payload: dict[str, Any]) -> int:
        accepted = 0
        for collector in list(self._collectors):
            if collector.offer(event_type, payload):
                accepted += 1
        return accepted

    def close_all(self) -> None:
        for collector in list(self._collectors):
            collector.close()

    def _unregister(self, collector: EventCollector) -> None:
        try:
            self._collectors.remove(collector)
        except ValueError:
            pass
