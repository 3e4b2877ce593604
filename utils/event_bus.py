# --------------------------------------------------------------------
# utils/event_bus.py
# --------------------------------------------------------------------
"""A super-light, asyncio-based pub/sub.  Each SyncClient owns one, so
several clients (e.g. in tests) never see each other's events."""
from __future__ import annotations
import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional, Union

_Handler = Callable[[object], Union[Awaitable[None], None]]


class EventBus:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._subs: Dict[str, List[_Handler]] = defaultdict(list)
        self._q: asyncio.Queue[tuple[str, object]] = asyncio.Queue()
        # background task started lazily on first publish
        self._task: asyncio.Task | None = None
        self.logger = logger or logging.getLogger(__name__)

    # -------------------------------------------------------------- #
    def subscribe(self, topic: str, fn: _Handler) -> Callable[[], None]:
        self._subs[topic].append(fn)

        def _unsubscribe() -> None:
            if fn in self._subs[topic]:
                self._subs[topic].remove(fn)

        return _unsubscribe

    def publish(self, topic: str, payload: object) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._worker())
        self._q.put_nowait((topic, payload))

    async def join(self) -> None:
        """Wait until every event published so far has been handled."""
        await self._q.join()

    async def close(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    # -------------------------------------------------------------- #
    async def _worker(self) -> None:
        while True:
            topic, payload = await self._q.get()
            try:
                for fn in list(self._subs.get(topic, [])):
                    try:
                        res = fn(payload)
                        if asyncio.iscoroutine(res):
                            await res
                    except Exception:  # keep bus alive
                        self.logger.exception("[event_bus] handler error on %s", topic)
            finally:
                self._q.task_done()
