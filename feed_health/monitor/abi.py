"""Price feed contract ABI: call encoding and result decoding.

The feed interface is fixed. Only the three read functions the health
check needs are described, all view functions without inputs:

    description()     returns (string)
    decimals()        returns (uint8)
    latestRoundData() returns (uint80, int256, uint256, uint256, uint80)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from feed_health.core.errors import DecodeError
from feed_health.core.time_utils import from_unix_seconds
from feed_health.core.types import CallResult, ContractCall, FeedReading, RoundData

_WORD_BYTES = 32


@dataclass(frozen=True, slots=True)
class AbiFunction:
    """Input-less view function with a fixed return schema."""

    name: str
    output_types: tuple[str, ...]
    dynamic: bool = False

    @property
    def signature(self) -> str:
        return f"{self.name}()"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


DESCRIPTION = AbiFunction("description", ("string",), dynamic=True)
DECIMALS = AbiFunction("decimals", ("uint8",))
LATEST_ROUND_DATA = AbiFunction(
    "latestRoundData",
    ("uint80", "int256", "uint256", "uint256", "uint80"),
)

FEED_FUNCTIONS: dict[str, AbiFunction] = {
    fn.name: fn for fn in (DESCRIPTION, DECIMALS, LATEST_ROUND_DATA)
}
REQUIRED_CALLS: tuple[str, ...] = tuple(FEED_FUNCTIONS)


def _function(name: str) -> AbiFunction:
    try:
        return FEED_FUNCTIONS[name]
    except KeyError:
        raise KeyError(f"unknown feed function: {name}") from None


def encode_call_data(function_name: str) -> bytes:
    """Return call data for an input-less feed function (its 4-byte selector)."""

    return _function(function_name).selector


def build_calls(feed_address: str) -> tuple[ContractCall, ...]:
    """Return the three read calls against a feed, in REQUIRED_CALLS order."""

    to = to_checksum_address(feed_address)
    return tuple(
        ContractCall(function_name=name, to=to, data=encode_call_data(name))
        for name in REQUIRED_CALLS
    )


def decode_result(function_name: str, data: bytes) -> tuple[Any, ...]:
    """Decode raw return bytes strictly against the function's return schema.

    Static return types must match their exact encoded length; trailing or
    missing bytes are rejected rather than truncated.
    """

    fn = _function(function_name)
    if not data:
        raise DecodeError(function_name, "empty result")

    expected = _WORD_BYTES * len(fn.output_types)
    if not fn.dynamic and len(data) != expected:
        raise DecodeError(function_name, f"expected {expected} bytes, got {len(data)}")
    if fn.dynamic and len(data) % _WORD_BYTES:
        raise DecodeError(function_name, f"length {len(data)} is not a multiple of {_WORD_BYTES}")

    try:
        values = tuple(decode(list(fn.output_types), data, strict=True))
    except (DecodingError, ValueError) as exc:
        raise DecodeError(function_name, str(exc)) from exc

    if fn.dynamic:
        canonical = len(encode(list(fn.output_types), list(values)))
        if len(data) != canonical:
            raise DecodeError(function_name, f"expected {canonical} bytes, got {len(data)}")

    return values


def decode_description(data: bytes) -> str:
    """Decode the description() string."""

    (description,) = decode_result(DESCRIPTION.name, data)
    return description


def decode_decimals(data: bytes) -> int:
    """Decode the decimals() uint8."""

    (decimals,) = decode_result(DECIMALS.name, data)
    return decimals


def decode_round_data(data: bytes) -> RoundData:
    """Decode latestRoundData() into RoundData.

    updatedAt must be representable as a timestamp since it drives the
    staleness computation.
    """

    round_id, answer, started_at, updated_at, answered_in_round = decode_result(
        LATEST_ROUND_DATA.name, data
    )
    try:
        from_unix_seconds(updated_at)
    except (OverflowError, ValueError, OSError) as exc:
        raise DecodeError(LATEST_ROUND_DATA.name, f"updatedAt {updated_at} is not a valid timestamp") from exc

    return RoundData(
        round_id=round_id,
        answer=answer,
        started_at=started_at,
        updated_at=updated_at,
        answered_in_round=answered_in_round,
    )


def decode_reading(results: Mapping[str, CallResult]) -> FeedReading:
    """Decode all three call results; assembly is keyed by function name, not arrival order."""

    missing = [name for name in REQUIRED_CALLS if name not in results]
    if missing:
        raise DecodeError(missing[0], "no result")

    return FeedReading(
        description=decode_description(results[DESCRIPTION.name].data),
        decimals=decode_decimals(results[DECIMALS.name].data),
        round_data=decode_round_data(results[LATEST_ROUND_DATA.name].data),
    )
