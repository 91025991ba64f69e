"""One-shot feed health runner invoked once per external schedule firing."""

import asyncio
import logging

from feed_health.core.config import Settings, get_settings
from feed_health.core.errors import FeedHealthError
from feed_health.core.logging import configure_logging
from feed_health.monitor.feed_config import load_feed_config
from feed_health.monitor.pipeline import LoggerSink, evaluate
from feed_health.monitor.rpc import JsonRpcReadCapability


async def _run(settings: Settings) -> int:
    logger = logging.getLogger(__name__)
    sink = LoggerSink()

    try:
        config = load_feed_config(settings.FEED_CONFIG_PATH)
    except FeedHealthError as exc:
        sink.emit_line(f"ERROR: {exc}")
        logger.error(
            "monitor_invalid_config",
            extra={"path": settings.FEED_CONFIG_PATH, "error": str(exc)},
        )
        return 1

    logger.info(
        "monitor_startup",
        extra={
            "feed": config.feed_name,
            "network": config.chain_selector_name,
            "is_testnet": config.is_testnet,
            "schedule": config.schedule,
        },
    )

    async with JsonRpcReadCapability.from_settings(settings) as capability:
        try:
            report = await evaluate(config, capability, sink)
        except FeedHealthError:
            return 1

    logger.info("monitor_summary", extra={"summary": report.summary, "status": report.status.value})
    return 0


def main() -> int:
    """Run a single feed evaluation and exit non-zero when it fails."""

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    try:
        return asyncio.run(_run(settings))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
