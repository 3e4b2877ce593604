def validate_config(config: dict):
    required_keys = ["API_URL", "WS_URL"]

    missing = [k for k in required_keys if k not in config or not config[k]]
    if missing:
        raise ValueError(f"Missing required configuration keys: {missing}")

    if not str(config["API_URL"]).startswith(("http://", "https://")):
        raise ValueError("API_URL must be an http(s) URL.")

    if not str(config["WS_URL"]).startswith(("ws://", "wss://")):
        raise ValueError("WS_URL must be a ws(s) URL.")

    for key in ("RECONNECT_DELAY", "POLL_INTERVAL", "HTTP_TIMEOUT", "HEARTBEAT_INTERVAL",
                "DATA_REFRESH_INTERVAL"):
        if key in config:
            if not isinstance(config[key], (int, float)) or isinstance(config[key], bool):
                raise TypeError(f"{key} must be a number.")
            if config[key] <= 0:
                raise ValueError(f"{key} must be positive.")

    capacity = config.get("WINDOW_CAPACITY", 20)
    if not isinstance(capacity, int) or isinstance(capacity, bool):
        raise TypeError("WINDOW_CAPACITY must be an integer.")
    if capacity < 2:
        raise ValueError("WINDOW_CAPACITY must be at least 2.")

    telegram = config.get("TELEGRAM") or {}
    if not isinstance(telegram, dict):
        raise TypeError("TELEGRAM must be a dictionary.")
    if bool(telegram.get("token")) != bool(telegram.get("chat_id")):
        raise ValueError("TELEGRAM token and chat_id must be set together.")
