"""
notifiers/hub.py
----------------
Fan-out layer that owns the configured alert back-ends and exposes a
single `send_signal()` entry point to the SyncClient.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from core.errors import AlertDispatchError
from models.signal import SignalSnapshot
from modules.rest_client import SignalRestClient
from notifiers.base import BaseNotifier
from notifiers.formatting import format_alert
from notifiers.remote import RemoteRelayNotifier
from notifiers.telegram import TelegramNotifier
from utils.config_manager import ConfigManager


class NotifierHub:
    """Collects active back-ends based on config and broadcasts alerts."""

    def __init__(
        self,
        cfg: Dict,
        *,
        rest_client: Optional[SignalRestClient] = None,
        backends: Optional[Iterable[BaseNotifier]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)

        if backends is not None:
            self.backends: List[BaseNotifier] = list(backends)
            return

        self.backends = []
        config_mgr = ConfigManager(cfg)
        tg_cfg = config_mgr.get_telegram()
        if tg_cfg.get("token") and tg_cfg.get("chat_id"):
            self.backends.append(
                TelegramNotifier(token=tg_cfg["token"], chat_id=tg_cfg["chat_id"])
            )

        if rest_client is not None and config_mgr.alert_via_api():
            self.backends.append(RemoteRelayNotifier(rest_client))

        if not self.backends:
            self.logger.info("No alert back-end configured – alerts disabled")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    async def send_signal(self, snapshot: SignalSnapshot) -> bool:
        """Format and fan-out; True if at least one back-end delivered.

        Raises AlertDispatchError when nothing was delivered and at least one
        back-end failed outright (as opposed to merely declining).
        """
        if not self.backends:
            return False

        text = format_alert(snapshot)
        delivered = False
        failures: List[str] = []
        for b in self.backends:
            name = b.__class__.__name__
            try:
                ok = await b.send(text, snapshot)
            except AlertDispatchError as exc:
                self.logger.warning("Back-end %s failed: %s", name, exc)
                failures.append(f"{name}: {exc}")
                ok = False
            except Exception as exc:  # one failing back-end must not stop the others
                self.logger.exception("Back-end %s crashed", name)
                failures.append(f"{name}: {exc!r}")
                ok = False
            delivered = delivered or ok
        if delivered:
            self.logger.info("🚀 Alert dispatched for %s", snapshot.signal.value)
        elif failures:
            raise AlertDispatchError("; ".join(failures))
        return delivered

    async def close(self) -> None:
        for b in self.backends:
            await b.close()
