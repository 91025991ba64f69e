"""Shared lightweight types to keep pipeline stage interfaces explicit and typed."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from feed_health.core.time_utils import to_iso

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class HealthStatus(str, Enum):
    """Discrete feed health classification."""

    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"


class EvaluationStage(str, Enum):
    """States one evaluation moves through; DONE and FAILED are terminal."""

    IDLE = "idle"
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    DECODING = "decoding"
    CLASSIFYING = "classifying"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


class BlockReference(str, Enum):
    """Block tag a read call is pinned to."""

    LAST_FINALIZED = "finalized"


@dataclass(frozen=True, slots=True)
class FeedConfig:
    """Validated evaluation parameters for a single feed."""

    schedule: str
    feed_address: str
    feed_name: str
    staleness_threshold_minutes: float
    chain_selector_name: str
    is_testnet: bool


@dataclass(frozen=True, slots=True)
class NetworkHandle:
    """Resolved network a read capability can target."""

    chain_family: str
    chain_selector_name: str
    chain_selector: int
    chain_id: int
    is_testnet: bool


@dataclass(frozen=True, slots=True)
class ContractCall:
    """Encoded read-only call against the feed contract."""

    function_name: str
    to: str
    data: bytes
    from_address: str = ZERO_ADDRESS
    block: BlockReference = BlockReference.LAST_FINALIZED


@dataclass(frozen=True, slots=True)
class CallResult:
    """Raw bytes returned for one contract call."""

    function_name: str
    data: bytes


@dataclass(frozen=True, slots=True)
class RoundData:
    """Decoded latestRoundData reading."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True, slots=True)
class FeedReading:
    """All three decoded reads of one evaluation."""

    description: str
    decimals: int
    round_data: RoundData


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Final evaluation output."""

    feed_name: str
    description: str
    price: Decimal
    round_id: int
    updated_at: datetime
    staleness_minutes: float
    status: HealthStatus
    summary: str

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation."""

        return {
            "feed_name": self.feed_name,
            "description": self.description,
            "price": str(self.price),
            "round_id": str(self.round_id),
            "updated_at": to_iso(self.updated_at),
            "staleness_minutes": round(self.staleness_minutes, 1),
            "status": self.status.value,
            "summary": self.summary,
        }
