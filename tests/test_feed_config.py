"""Feed configuration validation and loading."""

import json
from pathlib import Path

import pytest

from fakes import FEED_ADDRESS, raw_config
from feed_health.core.errors import ConfigurationError
from feed_health.monitor.feed_config import load_feed_config, validate_feed_config


def test_valid_config_builds_immutable_feed_config() -> None:
    """A well-formed record yields a frozen FeedConfig with snake_case fields."""

    config = validate_feed_config(raw_config(stalenessThresholdMinutes=7.5, extra="ignored"))

    assert config.feed_address == FEED_ADDRESS
    assert config.feed_name == "ETH/USD"
    assert config.staleness_threshold_minutes == 7.5
    assert config.chain_selector_name == "ethereum-mainnet-base-1"
    assert config.is_testnet is False
    with pytest.raises(AttributeError):
        config.feed_name = "BTC/USD"  # type: ignore[misc]


@pytest.mark.parametrize(
    "address",
    [
        FEED_ADDRESS[2:] + "00",
        "0xZZZ41dddad3595F9CEd3DcCFBe3D1F4b0a16Bb70",
        FEED_ADDRESS[:-2],
        FEED_ADDRESS + "00",
        "",
    ],
    ids=["missing_prefix", "non_hex", "too_short", "too_long", "empty"],
)
def test_rejects_bad_feed_address(address: str) -> None:
    """Addresses must be 0x followed by exactly 40 hex digits."""

    with pytest.raises(ConfigurationError) as exc_info:
        validate_feed_config(raw_config(feedAddress=address))

    assert exc_info.value.field == "feedAddress"
    assert "feedAddress" in str(exc_info.value)


@pytest.mark.parametrize("threshold", [0, -5, 0.0, float("nan"), float("inf"), 10**400, "10", True, None])
def test_rejects_bad_threshold(threshold: object) -> None:
    """The threshold must be a finite, strictly positive number."""

    with pytest.raises(ConfigurationError) as exc_info:
        validate_feed_config(raw_config(stalenessThresholdMinutes=threshold))

    assert exc_info.value.field == "stalenessThresholdMinutes"


@pytest.mark.parametrize("field", ["schedule", "feedName", "chainSelectorName"])
@pytest.mark.parametrize("value", ["", "   ", 42])
def test_rejects_empty_or_non_string_names(field: str, value: object) -> None:
    """Schedule, feed name, and chain selector name must be non-empty strings."""

    with pytest.raises(ConfigurationError) as exc_info:
        validate_feed_config(raw_config(**{field: value}))

    assert exc_info.value.field == field


@pytest.mark.parametrize("value", ["true", 1, None])
def test_rejects_non_boolean_testnet_flag(value: object) -> None:
    """isTestnet must be a real boolean."""

    with pytest.raises(ConfigurationError) as exc_info:
        validate_feed_config(raw_config(isTestnet=value))

    assert exc_info.value.field == "isTestnet"


def test_rejects_missing_field() -> None:
    """Missing fields are never defaulted."""

    config = raw_config()
    del config["feedName"]

    with pytest.raises(ConfigurationError) as exc_info:
        validate_feed_config(config)

    assert exc_info.value.field == "feedName"


def test_rejects_non_mapping() -> None:
    """The record must be an object."""

    with pytest.raises(ConfigurationError):
        validate_feed_config(["not", "a", "mapping"])


def test_load_feed_config_reads_json_file(tmp_path: Path) -> None:
    """Config files are JSON documents in the camelCase record shape."""

    path = tmp_path / "config.json"
    path.write_text(json.dumps(raw_config(isTestnet=True)), encoding="utf-8")

    assert load_feed_config(path).is_testnet is True


def test_load_feed_config_missing_file(tmp_path: Path) -> None:
    """An unreadable file is a configuration error."""

    with pytest.raises(ConfigurationError, match="cannot read"):
        load_feed_config(tmp_path / "missing.json")


def test_load_feed_config_invalid_json(tmp_path: Path) -> None:
    """Malformed JSON is a configuration error."""

    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="invalid JSON"):
        load_feed_config(path)
