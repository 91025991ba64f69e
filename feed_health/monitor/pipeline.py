"""One feed health evaluation: validate, dispatch, decode, classify, report."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from feed_health.core.errors import FeedHealthError
from feed_health.core.time_utils import utc_now
from feed_health.core.types import EvaluationStage, FeedConfig, HealthReport
from feed_health.monitor.abi import build_calls, decode_reading
from feed_health.monitor.classifier import REPORT_BAR, build_report, render_report
from feed_health.monitor.dispatcher import ReadCapability, dispatch_calls
from feed_health.monitor.feed_config import validate_feed_config
from feed_health.monitor.networks import CHAIN_FAMILY_EVM, resolve_network

logger = logging.getLogger(__name__)


class LogSink(Protocol):
    """Line-oriented destination for the human-readable report."""

    def emit_line(self, text: str) -> None:
        ...


class LoggerSink:
    """Emit report lines as INFO records on a named logger."""

    def __init__(self, name: str = "feed_health.report") -> None:
        self._logger = logging.getLogger(name)

    def emit_line(self, text: str) -> None:
        self._logger.info(text)


class ListSink:
    """Collect report lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def emit_line(self, text: str) -> None:
        self.lines.append(text)


class _StageTracker:
    def __init__(self, feed_name: str | None) -> None:
        self.feed_name = feed_name
        self.stage = EvaluationStage.IDLE

    def enter(self, stage: EvaluationStage) -> None:
        self.stage = stage
        logger.debug("feed_evaluation_stage", extra={"feed": self.feed_name, "stage": stage.value})


async def evaluate(
    config: FeedConfig,
    capability: ReadCapability,
    sink: LogSink,
    clock: Callable[[], datetime] = utc_now,
) -> HealthReport:
    """Evaluate a validated feed config and return its HealthReport.

    The clock is read exactly once, when classification starts. Any
    FeedHealthError aborts the evaluation: an ERROR line is emitted to the
    sink and the error propagates without a report.
    """

    tracker = _StageTracker(config.feed_name)
    try:
        return await _evaluate(config, capability, sink, clock, tracker)
    except FeedHealthError as exc:
        failed_in = tracker.stage
        tracker.enter(EvaluationStage.FAILED)
        sink.emit_line(f"ERROR: {exc}")
        logger.error(
            "feed_evaluation_failed",
            extra={"feed": config.feed_name, "stage": failed_in.value, "error": str(exc)},
        )
        raise


async def _evaluate(
    config: FeedConfig,
    capability: ReadCapability,
    sink: LogSink,
    clock: Callable[[], datetime],
    tracker: _StageTracker,
) -> HealthReport:
    sink.emit_line(REPORT_BAR)
    sink.emit_line(f"Feed Health Monitor: {config.feed_name}")
    sink.emit_line(REPORT_BAR)

    tracker.enter(EvaluationStage.DISPATCHING)
    network = resolve_network(CHAIN_FAMILY_EVM, config.chain_selector_name, config.is_testnet)

    sink.emit_line("[Step 1] Preparing EVM calls...")
    calls = build_calls(config.feed_address)

    sink.emit_line("[Step 2] Executing parallel EVM calls...")
    results = await dispatch_calls(capability, network, calls)

    tracker.enter(EvaluationStage.DECODING)
    reading = decode_reading(results)
    sink.emit_line(f"  Feed: {reading.description}")
    sink.emit_line(f"  Decimals: {reading.decimals}")

    tracker.enter(EvaluationStage.CLASSIFYING)
    report = build_report(config, reading, clock())

    tracker.enter(EvaluationStage.REPORTING)
    for line in render_report(report):
        sink.emit_line(line)
    sink.emit_line(report.summary)

    tracker.enter(EvaluationStage.DONE)
    logger.info(
        "feed_evaluation_completed",
        extra={
            "feed": report.feed_name,
            "status": report.status.value,
            "staleness_minutes": round(report.staleness_minutes, 1),
            "round_id": str(report.round_id),
        },
    )
    return report


async def evaluate_feed(
    raw_config: Any,
    capability: ReadCapability,
    sink: LogSink,
    clock: Callable[[], datetime] = utc_now,
) -> str:
    """Validate a raw config record, evaluate the feed, and return the summary line.

    A ConfigurationError is raised before anything is emitted or dispatched.
    """

    try:
        config = validate_feed_config(raw_config)
    except FeedHealthError as exc:
        sink.emit_line(f"ERROR: {exc}")
        logger.error("feed_evaluation_failed", extra={"stage": exc.stage.value, "error": str(exc)})
        raise

    report = await evaluate(config, capability, sink, clock)
    return report.summary
