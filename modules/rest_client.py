"""
rest_client.py
--------------
Pull side of the signal service: fetches the current snapshot and the
signal history over HTTP, relays alerts through ``/send-telegram`` and
exposes the auxiliary dashboard endpoints.
"""

from __future__ import annotations

import asyncio
import logging
import statistics
import time
from typing import Any, Dict, List, Optional

import aiohttp

from core.errors import TransportError
from core.message_handler import decode_history, decode_snapshot
from models.signal import SignalSnapshot
from utils.config_manager import ConfigManager


class SignalRestClient:
    """Asynchronous client for the signal service REST API."""

    def __init__(
        self,
        config: Dict,
        logger: Optional[logging.Logger] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

        config_mgr = ConfigManager(config)
        self.base_url = config_mgr.get_api_url()
        self.timeout = aiohttp.ClientTimeout(total=config_mgr.get_http_timeout())

        self._session = session
        self._owns_session = session is None

        self.metrics = {
            "requests_sent": 0,
            "errors": 0,
            "latencies": [],
        }

    # -------------------------------------------------------------------- #
    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        return self._session

    async def _request(self, method: str, path: str, payload: Optional[Dict] = None) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        try:
            t0 = time.monotonic()
            async with session.request(method, url, json=payload, timeout=self.timeout) as resp:
                self.metrics["requests_sent"] += 1
                if resp.status != 200:
                    raise TransportError(f"HTTP {resp.status} for {method} {path}")
                data = await resp.json(content_type=None)
                self.metrics["latencies"].append(time.monotonic() - t0)
        except TransportError:
            self.metrics["errors"] += 1
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            self.metrics["errors"] += 1
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        return data

    # -------------------------------------------------------------------- #
    async def fetch_signal(self) -> SignalSnapshot:
        """Current snapshot; raises TransportError or MalformedPayload."""
        return decode_snapshot(await self._request("GET", "/signal"))

    async def fetch_history(self) -> List[SignalSnapshot]:
        """Recent snapshots, most recent first."""
        return decode_history(await self._request("GET", "/signal/history"))

    async def send_telegram(self, snapshot: SignalSnapshot) -> bool:
        """Ask the service to push ``snapshot`` to Telegram; returns its success flag."""
        data = await self._request("POST", "/send-telegram", snapshot.to_payload())
        return bool(isinstance(data, dict) and data.get("success"))

    async def fetch_performance(self) -> Dict[str, Any]:
        return await self._request("GET", "/performance")

    async def fetch_advanced_signal(self) -> Dict[str, Any]:
        """Multi-timeframe analysis and position sizing combined."""
        return await self._request("GET", "/advanced-signal")

    async def send_test_notification(self) -> bool:
        """Ask the service to send its canned test message to Telegram."""
        data = await self._request("GET", "/test-telegram")
        if not isinstance(data, dict):
            return False
        if not data.get("success"):
            self.logger.warning("Test notification failed: %s", data.get("message"))
            return False
        return True

    # -------------------------------------------------------------------- #
    def log_metrics(self) -> None:
        avg = statistics.mean(self.metrics["latencies"]) if self.metrics["latencies"] else 0
        self.logger.info(
            "📊 Requests: %s | Errors: %s | Avg latency: %.3fs",
            self.metrics["requests_sent"],
            self.metrics["errors"],
            avg,
        )

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
