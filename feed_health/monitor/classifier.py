"""Staleness classification and report rendering."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Context, Decimal

from feed_health.core.time_utils import from_unix_seconds, minutes_between, to_iso
from feed_health.core.types import FeedConfig, FeedReading, HealthReport, HealthStatus

WARN_MULTIPLIER = 3
REPORT_BAR = "━" * 52

# int256 answers have up to 78 digits; scaling must stay exact.
_PRICE_CONTEXT = Context(prec=100)
_CENTS = Decimal("0.01")
_TENTHS = Decimal("0.1")


def scale_price(answer: int, decimals: int) -> Decimal:
    """Return answer / 10**decimals exactly; negative answers pass through."""

    return Decimal(answer).scaleb(-decimals, context=_PRICE_CONTEXT)


def classify_staleness(staleness_minutes: float, threshold_minutes: float) -> HealthStatus:
    """Classify staleness against the threshold; equality falls to the worse tier."""

    if staleness_minutes < threshold_minutes:
        return HealthStatus.OK
    if staleness_minutes < threshold_minutes * WARN_MULTIPLIER:
        return HealthStatus.WARN
    return HealthStatus.FAIL


def format_price(price: Decimal) -> str:
    return str(price.quantize(_CENTS, rounding=ROUND_HALF_UP, context=_PRICE_CONTEXT))


def format_staleness(staleness_minutes: float) -> str:
    return str(Decimal(repr(staleness_minutes)).quantize(_TENTHS, rounding=ROUND_HALF_UP))


def format_summary(feed_name: str, status: HealthStatus, price: Decimal, staleness_minutes: float) -> str:
    """Single-line machine summary: '<feed>: <status> ($<price>, <staleness>m)'."""

    return f"{feed_name}: {status.value} (${format_price(price)}, {format_staleness(staleness_minutes)}m)"


def build_report(config: FeedConfig, reading: FeedReading, now: datetime) -> HealthReport:
    """Compute price, staleness, and status for one reading.

    `now` is captured once by the caller so every comparison uses the same
    instant.
    """

    round_data = reading.round_data
    price = scale_price(round_data.answer, reading.decimals)
    updated_at = from_unix_seconds(round_data.updated_at)
    staleness_minutes = minutes_between(updated_at, now)
    status = classify_staleness(staleness_minutes, config.staleness_threshold_minutes)

    return HealthReport(
        feed_name=config.feed_name,
        description=reading.description,
        price=price,
        round_id=round_data.round_id,
        updated_at=updated_at,
        staleness_minutes=staleness_minutes,
        status=status,
        summary=format_summary(config.feed_name, status, price, staleness_minutes),
    )


def render_report(report: HealthReport) -> list[str]:
    """Return the human-readable report block, one entry per log line."""

    return [
        REPORT_BAR,
        f"  Feed:      {report.description}",
        f"  Price:     ${format_price(report.price)}",
        f"  Round ID:  {report.round_id}",
        f"  Updated:   {to_iso(report.updated_at)}",
        f"  Staleness: {format_staleness(report.staleness_minutes)} minutes",
        f"  Status:    {report.status.value}",
        REPORT_BAR,
    ]
