"""
websocket_client.py
-------------------
One push-channel connection attempt to the signal service.  The channel
never reconnects on its own: it reports open / message / error / close to
its owner (the SyncClient), which decides what happens next.
"""
import asyncio
import logging
from typing import Any, Callable, Optional, Union

import websockets

from core.message_handler import split_frames

OpenCallback = Callable[["WebSocketChannel"], None]
MessageCallback = Callable[["WebSocketChannel", Union[str, bytes]], None]
CloseCallback = Callable[["WebSocketChannel", Optional[int], str], None]
ErrorCallback = Callable[["WebSocketChannel", BaseException], None]


class WebSocketChannel:
    def __init__(
        self,
        url: str,
        *,
        on_open: OpenCallback,
        on_message: MessageCallback,
        on_close: CloseCallback,
        on_error: ErrorCallback,
        logger: Optional[logging.Logger] = None,
        heartbeat_interval: float = 25,
        open_timeout: float = 10,
    ):
        self.url = url
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.heartbeat_interval = heartbeat_interval
        self.open_timeout = open_timeout

        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        self._on_error = on_error

        self.ws: Any = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self.ws is not None and not self._closed

    def open(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())

    def close(self) -> None:
        """Tear down the connection; no callbacks fire after this returns."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------ #
    async def _run(self) -> None:
        code: Optional[int] = None
        reason = ""
        try:
            async with websockets.connect(
                self.url,
                ping_interval=self.heartbeat_interval,
                ping_timeout=10,
                open_timeout=self.open_timeout,
            ) as ws:
                self.ws = ws
                self.logger.info("✅ WS connect → %s", self.url)
                self._notify(self._on_open, self)

                async for raw in ws:
                    for frame in split_frames(raw):
                        if self._closed:
                            return
                        self._notify(self._on_message, self, frame)
            code, reason = ws.close_code, ws.close_reason or ""
        except websockets.exceptions.ConnectionClosed as e:
            if e.rcvd is not None:
                code, reason = e.rcvd.code, e.rcvd.reason
            self._notify(self._on_error, self, e)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
            reason = str(exc)
            self._notify(self._on_error, self, exc)
        finally:
            self.ws = None

        level = self.logger.info if code in (1000, 1001, None) else self.logger.warning
        level("WS closed (code=%s reason=%s)", code, reason)
        self._notify(self._on_close, self, code, reason)

    def _notify(self, callback: Callable[..., None], *args) -> None:
        if self._closed:
            return
        try:
            callback(*args)
        except Exception:
            self.logger.exception("Channel callback %s failed", getattr(callback, "__name__", callback))
