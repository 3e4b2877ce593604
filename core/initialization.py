"""
core/initialization.py
----------------------
Loads configuration from .env and wires all runtime components with
simple dependency-injection (DI) overrides.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv

from modules.rest_client import SignalRestClient
from modules.rolling_window import RollingWindow
from modules.sync_client import SyncClient
from notifiers.hub import NotifierHub
from utils.config_manager import ConfigManager
from utils.logger import setup_logger


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_configuration(env_path: str = "config.env") -> Dict:
    """
    Load settings from an .env-style file and return a structured config dict.
    """
    log = logging.getLogger(__name__)
    load_dotenv(dotenv_path=env_path)

    conf: Dict[str, object] = {
        "API_URL": os.getenv("API_URL", "http://localhost:5000/api"),
        "WS_URL": os.getenv("WS_URL", "ws://localhost:5000/ws"),
        "RECONNECT_DELAY": float(os.getenv("RECONNECT_DELAY", "3")),
        "POLL_INTERVAL": float(os.getenv("POLL_INTERVAL", "30")),
        "WINDOW_CAPACITY": int(os.getenv("WINDOW_CAPACITY", "20")),
        "HTTP_TIMEOUT": float(os.getenv("HTTP_TIMEOUT", "10")),
        "HEARTBEAT_INTERVAL": float(os.getenv("HEARTBEAT_INTERVAL", "25")),
        "DATA_REFRESH_INTERVAL": float(os.getenv("DATA_REFRESH_INTERVAL", "30")),
        "TELEGRAM": {
            "token": os.getenv("TELEGRAM_TOKEN"),
            "chat_id": os.getenv("TELEGRAM_CHAT_ID"),
        },
        "ALERT_VIA_API": _env_flag("ALERT_VIA_API", True),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
        "LOG_FILE": os.getenv("LOG_FILE", "logs/dashboard.log"),
    }

    log.debug("API_URL: %s | WS_URL: %s", conf["API_URL"], conf["WS_URL"])
    return conf


def initialize_components(
    config: Dict,
    overrides: Optional[Dict[str, object]] = None,
) -> Dict[str, object]:
    """
    Construct and wire together all runtime components (supports DI via overrides).

    Keys you can override:
    {"logger", "rest_client", "notifier", "window", "sync_client"}
    """
    overrides = overrides or {}
    config_mgr = ConfigManager(config)

    logger = overrides.get("logger") or setup_logger(
        "SignalDashboard",
        level=config_mgr.get_log_level(),
        log_file=config_mgr.get_log_file(),
    )

    rest_client = overrides.get("rest_client") or SignalRestClient(config, logger=logger)

    notifier = overrides.get("notifier")
    if notifier is None:
        notifier = NotifierHub(config, rest_client=rest_client, logger=logger)

    window = overrides.get("window") or RollingWindow(config_mgr.get_window_capacity())

    sync_client = overrides.get("sync_client")
    if sync_client is None:
        sync_client = SyncClient(
            config,
            logger=logger,
            rest_client=rest_client,
            alerter=notifier,
            window=window,
        )

    logger.info("✅ Logger initialized.")
    logger.info("✅ REST client initialized: %s", config_mgr.get_api_url())
    logger.info("✅ Notifier initialized: %s", notifier.__class__.__name__)
    logger.info("✅ SyncClient initialized.")

    return {
        "logger": logger,
        "rest_client": rest_client,
        "notifier": notifier,
        "window": window,
        "sync_client": sync_client,
    }
