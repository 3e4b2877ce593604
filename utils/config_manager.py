from typing import Any, Dict, Optional


class ConfigManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config.config if isinstance(config, ConfigManager) else config

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def get_api_url(self) -> str:
        return (self.config.get("API_URL") or "http://localhost:5000/api").rstrip("/")

    def get_ws_url(self) -> str:
        return self.config.get("WS_URL") or "ws://localhost:5000/ws"

    def get_reconnect_delay(self) -> float:
        return float(self.config.get("RECONNECT_DELAY", 3.0))

    def get_poll_interval(self) -> float:
        return float(self.config.get("POLL_INTERVAL", 30.0))

    def get_window_capacity(self) -> int:
        return int(self.config.get("WINDOW_CAPACITY", 20))

    def get_http_timeout(self) -> float:
        return float(self.config.get("HTTP_TIMEOUT", 10.0))

    def get_heartbeat_interval(self) -> float:
        return float(self.config.get("HEARTBEAT_INTERVAL", 25.0))

    def get_telegram(self) -> Dict[str, Any]:
        return self.config.get("TELEGRAM") or {}

    def alert_via_api(self) -> bool:
        return bool(self.config.get("ALERT_VIA_API", True))

    def get_data_refresh_interval(self) -> float:
        return float(self.config.get("DATA_REFRESH_INTERVAL", 30.0))

    def get_log_level(self) -> str:
        return str(self.config.get("LOG_LEVEL") or "INFO").upper()

    def get_log_file(self) -> Optional[str]:
        # an empty LOG_FILE disables the file handler
        return self.config.get("LOG_FILE", "logs/dashboard.log") or None
