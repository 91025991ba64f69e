"""Feed configuration validation: raw config record in, immutable FeedConfig out."""

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from feed_health.core.errors import ConfigurationError
from feed_health.core.types import FeedConfig

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_ROOT_FIELD = "<config>"


class FeedConfigRecord(BaseModel):
    """Wire shape of the feed configuration record (camelCase keys)."""

    model_config = ConfigDict(extra="ignore", frozen=True, strict=True)

    schedule: str = Field(alias="schedule", min_length=1)
    feed_address: str = Field(alias="feedAddress")
    feed_name: str = Field(alias="feedName", min_length=1)
    staleness_threshold_minutes: float = Field(
        alias="stalenessThresholdMinutes", gt=0, allow_inf_nan=False
    )
    chain_selector_name: str = Field(alias="chainSelectorName", min_length=1)
    is_testnet: bool = Field(alias="isTestnet")

    @field_validator("schedule", "feed_name", "chain_selector_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("feed_address")
    @classmethod
    def _hex_address(cls, value: str) -> str:
        if not _ADDRESS_RE.match(value):
            raise ValueError("must be a 0x-prefixed 20-byte hex address")
        return value

    @field_validator("staleness_threshold_minutes", mode="before")
    @classmethod
    def _real_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("must be a number")
        try:
            return float(value)
        except OverflowError:
            raise ValueError("must be a finite number") from None


def _error_message(error: Mapping[str, Any]) -> str:
    message = str(error.get("msg", "invalid value"))
    return message.removeprefix("Value error, ")


def validate_feed_config(raw: Any) -> FeedConfig:
    """Validate a raw configuration record and return the immutable FeedConfig.

    Raises ConfigurationError naming the first offending field. No defaults
    are substituted for missing or invalid values.
    """

    if not isinstance(raw, Mapping):
        raise ConfigurationError(_ROOT_FIELD, "expected a JSON object")

    try:
        record = FeedConfigRecord.model_validate(dict(raw))
    except ValidationError as exc:
        error = exc.errors()[0]
        loc = error.get("loc") or (_ROOT_FIELD,)
        raise ConfigurationError(str(loc[0]), _error_message(error)) from exc

    return FeedConfig(
        schedule=record.schedule,
        feed_address=record.feed_address,
        feed_name=record.feed_name,
        staleness_threshold_minutes=record.staleness_threshold_minutes,
        chain_selector_name=record.chain_selector_name,
        is_testnet=record.is_testnet,
    )


def load_feed_config(path: str | Path) -> FeedConfig:
    """Read a JSON config file and validate it."""

    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(_ROOT_FIELD, f"cannot read {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(_ROOT_FIELD, f"invalid JSON in {config_path}: {exc}") from exc

    return validate_feed_config(raw)
