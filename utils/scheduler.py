"""
utils/scheduler.py
------------------
Timer port used by the SyncClient for reconnect and polling delays.
Production code schedules on the running asyncio loop; tests inject a
virtual clock.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimer:
    """Schedules callbacks on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)
