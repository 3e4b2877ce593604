import asyncio
import signal

from core.initialization import initialize_components, load_configuration
from models.connection_state import ConnectionState
from utils.config_validator import validate_config


async def run_dashboard() -> None:
    """
    Entrypoint coroutine for the dashboard sync client.

    Loads and validates the configuration, wires the components and keeps
    the SyncClient running.  Accepted snapshots, signal transitions and the
    side-panel data are written to the log, standing in for the rendering
    layer.  ``SIGUSR1`` refreshes everything, ``SIGUSR2`` sends a test
    notification.
    """
    config = load_configuration()
    validate_config(config)

    components = initialize_components(config)
    logger = components["logger"]
    client = components["sync_client"]
    window = components["window"]

    def render_snapshot(snapshot) -> None:
        change = window.latest_change()
        trend = f"{change.direction} {change.percent:.2f}%" if change else "n/a"
        logger.info(
            "%s | Binance %.2f | DEX %.2f | spread %+.2f%% | RSI %.1f | Δ %s",
            snapshot.signal.value,
            snapshot.binance_price,
            snapshot.dex_price,
            snapshot.spread,
            snapshot.rsi,
            trend,
        )
        stats = window.summary()
        if stats and stats["count"] > 1:
            logger.info(
                "📈 Last %d prices: low %.2f | high %.2f | mean %.2f | %+.2f%%",
                stats["count"], stats["low"], stats["high"], stats["mean"], stats["change_pct"],
            )

    def render_connection(state: ConnectionState) -> None:
        if state is ConnectionState.CONNECTED:
            logger.info("🟢 Real-time connection active")
        elif state is ConnectionState.DISCONNECTED:
            logger.info("🔴 Disconnected - using polling")

    def render_performance(data) -> None:
        metrics = (data or {}).get("metrics") or {}
        logger.info("💼 Performance: %s", ", ".join(f"{k}={v}" for k, v in metrics.items()) or "n/a")

    client.subscribe("snapshot", render_snapshot)
    client.subscribe("connection", render_connection)
    client.subscribe("history", lambda h: logger.info("📜 History refreshed (%d entries)", len(h)))
    client.subscribe("performance", render_performance)
    client.subscribe("advanced", lambda d: logger.info("🧭 Advanced signal data: %s", sorted(d or {})))

    loop = asyncio.get_running_loop()
    actions = set()

    def trigger(action) -> None:
        task = loop.create_task(action())
        actions.add(task)
        task.add_done_callback(actions.discard)

    for name, action in (("SIGUSR1", client.refresh_all), ("SIGUSR2", client.send_test_alert)):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            loop.add_signal_handler(signum, trigger, action)
        except NotImplementedError:
            logger.debug("Signal handlers unsupported; %s disabled", name)

    client.start()
    try:
        await asyncio.Event().wait()
    finally:
        await client.shutdown()
        await components["notifier"].close()
        client.rest_client.log_metrics()


def main():
    try:
        asyncio.run(run_dashboard())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        print(f"❌ Dashboard terminated due to error: {e}")


if __name__ == "__main__":
    main()
