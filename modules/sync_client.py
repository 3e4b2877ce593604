"""
sync_client.py
--------------
Keeps the dashboard's "current signal" fresh.  Push (WebSocket) is the
preferred source; while it is down the client pulls ``GET /signal`` on a
fixed interval and reconnects after a fixed delay.  Push and pull results
both go through :meth:`SyncClient.on_snapshot`, which rejects anything
older than what is already held.  A separate timer keeps the dashboard side
panels (performance, advanced signal data) and the history list current.

Every callback (channel events, timers, visibility changes) runs on the
single asyncio loop, so no locking is needed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Dict, List, Optional, Set, Union

from core.errors import AlertDispatchError, MalformedPayload, TransportError
from core.message_handler import decode_snapshot
from core.signal_handler import SignalTransitionTracker
from models.connection_state import ConnectionState
from models.price_observation import PriceObservation
from models.signal import SignalKind, SignalSnapshot
from modules.rest_client import SignalRestClient
from modules.rolling_window import RollingWindow
from modules.websocket_client import WebSocketChannel
from utils.config_manager import ConfigManager
from utils.event_bus import EventBus
from utils.logger import setup_logger
from utils.scheduler import AsyncioTimer, Timer, TimerHandle
from utils.visibility import ManualVisibility, VisibilitySource

WS_ERROR_MESSAGE = "WebSocket connection error. Falling back to REST API."
PULL_ERROR_MESSAGE = "Failed to load signal data. Please try again later."
HISTORY_ERROR_MESSAGE = "Failed to load signal history. Please try again later."

# history and performance refresh on every Nth data tick (4 x 30 s = 2 min)
SLOW_REFRESH_EVERY = 4


class SyncClient:
    def __init__(
        self,
        config: Dict[str, Any],
        logger: Optional[logging.Logger] = None,
        *,
        rest_client: Optional[SignalRestClient] = None,
        alerter: Any = None,
        timer: Optional[Timer] = None,
        visibility: Optional[VisibilitySource] = None,
        channel_factory: Optional[Callable[..., WebSocketChannel]] = None,
        window: Optional[RollingWindow] = None,
        bus: Optional[EventBus] = None,
    ):
        self.config_mgr = ConfigManager(config)
        self.url = self.config_mgr.get_ws_url()
        self.reconnect_delay = self.config_mgr.get_reconnect_delay()
        self.poll_interval = self.config_mgr.get_poll_interval()
        self.refresh_interval = self.config_mgr.get_data_refresh_interval()

        self.logger = logger if logger else setup_logger("SyncClient")

        self.rest_client = rest_client or SignalRestClient(config, logger=self.logger)
        self.alerter = alerter
        self.timer = timer or AsyncioTimer()
        self.visibility = visibility or ManualVisibility()
        self._channel_factory = channel_factory or WebSocketChannel
        self.window = window or RollingWindow(self.config_mgr.get_window_capacity())
        self.bus = bus or EventBus(self.logger)
        self.transitions = SignalTransitionTracker()

        self.state = ConnectionState.DISCONNECTED
        self.latest: Optional[SignalSnapshot] = None
        self.history: List[SignalSnapshot] = []
        self.error: Optional[str] = None
        self.loading = True
        # dashboard side panels; None until the first successful fetch
        self.performance: Optional[Dict[str, Any]] = None
        self.advanced: Optional[Dict[str, Any]] = None

        self._channel: Optional[WebSocketChannel] = None
        self._reconnect_handle: Optional[TimerHandle] = None
        self._poll_handle: Optional[TimerHandle] = None
        self._refresh_handle: Optional[TimerHandle] = None
        self._refresh_ticks = 0
        self._tasks: Set[asyncio.Task] = set()
        self._running = False
        # bumped by stop(); pulls started under an older epoch are discarded
        self._epoch = 0
        self._unsubscribe_visibility: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #
    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def using_fallback(self) -> bool:
        return self._running and not self.is_connected

    @property
    def last_notified(self) -> Optional[SignalKind]:
        return self.transitions.last_notified

    def subscribe(self, topic: str, fn: Callable[[object], Any]) -> Callable[[], None]:
        return self.bus.subscribe(topic, fn)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        if not self._running:
            self._running = True
            self._unsubscribe_visibility = self.visibility.subscribe(self._on_visibility_change)
            self.logger.info("🚀 SyncClient started (push=%s)", self.url)

        if not self.visibility.is_visible():
            self._set_state(ConnectionState.SUSPENDED)
            return

        self._connect()
        self._spawn(self.refresh_history())
        self._spawn(self.refresh_performance())
        self._spawn(self.refresh_advanced())
        self._schedule_refresh()

    def stop(self) -> None:
        self._epoch += 1
        self._running = False
        self._cancel_reconnect()
        self._cancel_poll()
        self._cancel_refresh()
        if self._unsubscribe_visibility is not None:
            self._unsubscribe_visibility()
            self._unsubscribe_visibility = None
        if self._channel is not None:
            self._channel.close()
            self._channel = None
        for task in list(self._tasks):
            task.cancel()
        self._set_state(ConnectionState.DISCONNECTED)
        self.logger.info("🛑 SyncClient stopped")

    async def shutdown(self) -> None:
        """stop() plus awaiting everything it cancelled and releasing the HTTP session."""
        channel = self._channel
        self.stop()
        if channel is not None and hasattr(channel, "wait_closed"):
            await channel.wait_closed()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.bus.close()
        await self.rest_client.close()

    async def drain(self) -> None:
        """Wait for in-flight pulls, alerts and event handlers to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.bus.join()

    # ------------------------------------------------------------------ #
    # Snapshot intake (push and pull share this gate)
    # ------------------------------------------------------------------ #
    def on_message(self, raw: Any) -> bool:
        try:
            snapshot = decode_snapshot(raw)
        except MalformedPayload as exc:
            self.logger.warning("Malformed WS payload dropped: %s", exc)
            return False
        return self.on_snapshot(snapshot)

    def on_snapshot(self, snapshot: SignalSnapshot) -> bool:
        if self.latest is not None and snapshot.timestamp < self.latest.timestamp:
            self.logger.debug(
                "Stale snapshot ignored (%s < %s)", snapshot.timestamp, self.latest.timestamp
            )
            return False

        self.latest = snapshot
        self.loading = False
        self.window.push(PriceObservation.from_snapshot(snapshot))
        self.bus.publish("snapshot", snapshot)

        if self.transitions.observe(snapshot.signal):
            self.logger.info("🔔 Signal changed to %s @ %s", snapshot.signal.value, snapshot.timestamp)
            self.bus.publish("signal_changed", snapshot)
            self._dispatch_alert(snapshot)
            self._spawn(self.refresh_history())
        return True

    # ------------------------------------------------------------------ #
    # Pull path
    # ------------------------------------------------------------------ #
    def pull_now(self) -> None:
        """One-shot ``GET /signal``; the result goes through on_snapshot."""
        self._spawn(self._pull(self._epoch))

    async def _pull(self, epoch: int) -> None:
        try:
            snapshot = await self.rest_client.fetch_signal()
        except TransportError as exc:
            self.logger.warning("Error fetching signal data: %s", exc)
            if epoch == self._epoch:
                self._set_error(PULL_ERROR_MESSAGE)
            return
        except MalformedPayload as exc:
            self.logger.warning("Malformed /signal response dropped: %s", exc)
            return
        if epoch != self._epoch:
            self.logger.debug("Discarding pull result that completed after stop()")
            return
        self.on_snapshot(snapshot)

    async def refresh_history(self) -> List[SignalSnapshot]:
        epoch = self._epoch
        try:
            history = await self.rest_client.fetch_history()
        except (TransportError, MalformedPayload) as exc:
            self.logger.warning("Error fetching signal history: %s", exc)
            if epoch == self._epoch:
                self._set_error(HISTORY_ERROR_MESSAGE)
            return self.history
        if epoch != self._epoch:
            return self.history
        self.history = history
        self.bus.publish("history", history)
        return history

    async def refresh_performance(self) -> Optional[Dict[str, Any]]:
        """Reload the performance panel; failures keep the last value and are only logged."""
        epoch = self._epoch
        try:
            data = await self.rest_client.fetch_performance()
        except TransportError as exc:
            self.logger.warning("Failed to fetch performance data: %s", exc)
            return self.performance
        if epoch != self._epoch:
            return self.performance
        self.performance = data
        self.bus.publish("performance", data)
        return data

    async def refresh_advanced(self) -> Optional[Dict[str, Any]]:
        """Reload multi-timeframe analysis and position sizing."""
        epoch = self._epoch
        try:
            data = await self.rest_client.fetch_advanced_signal()
        except TransportError as exc:
            self.logger.warning("Failed to fetch advanced signal data: %s", exc)
            return self.advanced
        if epoch != self._epoch:
            return self.advanced
        self.advanced = data
        self.bus.publish("advanced", data)
        return data

    async def refresh_all(self) -> None:
        """Manual refresh: current signal, history, performance and advanced data at once."""
        await asyncio.gather(
            self._pull(self._epoch),
            self.refresh_history(),
            self.refresh_performance(),
            self.refresh_advanced(),
        )

    # ------------------------------------------------------------------ #
    # Alerts
    # ------------------------------------------------------------------ #
    def _dispatch_alert(self, snapshot: SignalSnapshot) -> None:
        if self.alerter is None:
            return
        self._spawn(self._send_alert(snapshot))

    async def _send_alert(self, snapshot: SignalSnapshot) -> bool:
        try:
            delivered = await self.alerter.send_signal(snapshot)
        except AlertDispatchError as exc:
            self.logger.warning("Alert for %s failed: %s", snapshot.signal.value, exc)
            return False
        except Exception:
            self.logger.exception("Alert dispatch crashed for %s", snapshot.signal.value)
            return False
        if not delivered:
            self.logger.warning("Alert for %s was not delivered", snapshot.signal.value)
        return bool(delivered)

    async def send_alert_now(self) -> bool:
        """Manual trigger: push the latest snapshot to the alert back-ends."""
        if self.latest is None or self.alerter is None:
            return False
        return await self._send_alert(self.latest)

    async def send_test_alert(self) -> bool:
        """Ask the signal service to send its test notification."""
        try:
            sent = await self.rest_client.send_test_notification()
        except TransportError as exc:
            self.logger.warning("Error sending test notification: %s", exc)
            return False
        if sent:
            self.logger.info("📨 Test notification sent to Telegram")
        return sent

    # ------------------------------------------------------------------ #
    # Push channel
    # ------------------------------------------------------------------ #
    def _connect(self) -> None:
        self._cancel_reconnect()
        if self._channel is not None:
            self._channel.close()
            self._channel = None

        self._set_state(ConnectionState.CONNECTING)
        channel = self._channel_factory(
            self.url,
            on_open=self._handle_open,
            on_message=self._handle_message,
            on_close=self._handle_close,
            on_error=self._handle_error,
            logger=self.logger,
            heartbeat_interval=self.config_mgr.get_heartbeat_interval(),
        )
        self._channel = channel
        channel.open()

    def _handle_open(self, channel: WebSocketChannel) -> None:
        if channel is not self._channel:
            return
        self.logger.info("WebSocket connection established")
        self._cancel_poll()
        self._set_error(None)
        if self.state is not ConnectionState.SUSPENDED:
            self._set_state(ConnectionState.CONNECTED)
        self._spawn(self.refresh_history())

    def _handle_message(self, channel: WebSocketChannel, raw: Union[str, bytes]) -> None:
        if channel is not self._channel:
            return
        self.on_message(raw)

    def _handle_error(self, channel: WebSocketChannel, exc: BaseException) -> None:
        if channel is not self._channel:
            return
        self.logger.warning("WebSocket error: %s", exc)
        self._set_error(WS_ERROR_MESSAGE)
        self.pull_now()

    def _handle_close(self, channel: WebSocketChannel, code: Optional[int], reason: str) -> None:
        if channel is not self._channel:
            return
        self._channel = None
        if not self._running or self.state is ConnectionState.SUSPENDED:
            return
        self._set_state(ConnectionState.DISCONNECTED)
        self._schedule_reconnect()
        self._schedule_poll()

    # ------------------------------------------------------------------ #
    # Timers
    # ------------------------------------------------------------------ #
    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        self.logger.info("🔁 Reconnecting in %.1fs", self.reconnect_delay)
        self._reconnect_handle = self.timer.call_later(self.reconnect_delay, self._reconnect)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if not self._running or self.state is not ConnectionState.DISCONNECTED:
            return
        if not self.visibility.is_visible():
            return
        self._connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _schedule_poll(self) -> None:
        if self._poll_handle is None:
            self._poll_handle = self.timer.call_later(self.poll_interval, self._poll_tick)

    def _poll_tick(self) -> None:
        self._poll_handle = None
        if not self._running or self.state in (ConnectionState.CONNECTED, ConnectionState.SUSPENDED):
            return
        self.pull_now()
        self._schedule_poll()

    def _cancel_poll(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None

    def _schedule_refresh(self) -> None:
        if self._refresh_handle is None:
            self._refresh_handle = self.timer.call_later(self.refresh_interval, self._refresh_tick)

    def _refresh_tick(self) -> None:
        self._refresh_handle = None
        if not self._running or self.state is ConnectionState.SUSPENDED:
            return
        self._refresh_ticks += 1
        self._spawn(self.refresh_advanced())
        if self._refresh_ticks % SLOW_REFRESH_EVERY == 0:
            self._spawn(self.refresh_history())
            self._spawn(self.refresh_performance())
        self._schedule_refresh()

    def _cancel_refresh(self) -> None:
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    # ------------------------------------------------------------------ #
    # Visibility
    # ------------------------------------------------------------------ #
    def _on_visibility_change(self, visible: bool) -> None:
        if not self._running:
            return
        if not visible:
            self.logger.info("Host hidden – suspending reconnects and polling")
            self._cancel_reconnect()
            self._cancel_poll()
            self._cancel_refresh()
            self._set_state(ConnectionState.SUSPENDED)
            return

        self._schedule_refresh()
        if self._channel is not None:
            # the channel survived suspension (open or still handshaking)
            self._set_state(
                ConnectionState.CONNECTED if self._channel.is_open else ConnectionState.CONNECTING
            )
            return
        self.logger.info("Host visible again – reconnecting")
        self._connect()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        self.logger.debug("Connection state %s → %s", self.state.value, state.value)
        self.state = state
        self.bus.publish("connection", state)

    def _set_error(self, message: Optional[str]) -> None:
        if message == self.error:
            return
        self.error = message
        self.bus.publish("error", message)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
