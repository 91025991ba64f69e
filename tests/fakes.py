"""Fakes and response builders shared by the feed health tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

from eth_abi import encode
from eth_utils import to_checksum_address

from feed_health.core.types import ContractCall, NetworkHandle
from feed_health.monitor.networks import resolve_network

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
FEED_ADDRESS = to_checksum_address("0x71041dddad3595f9ced3dccfbe3d1f4b0a16bb70")
ROUND_ID = 18446744073709572150
ROUND_TYPES = ["uint80", "int256", "uint256", "uint256", "uint80"]


def raw_config(**overrides: Any) -> dict[str, Any]:
    config: dict[str, Any] = {
        "schedule": "0 */5 * * * *",
        "feedAddress": FEED_ADDRESS,
        "feedName": "ETH/USD",
        "stalenessThresholdMinutes": 10,
        "chainSelectorName": "ethereum-mainnet-base-1",
        "isTestnet": False,
    }
    config.update(overrides)
    return config


def base_network() -> NetworkHandle:
    return resolve_network("evm", "ethereum-mainnet-base-1", False)


def updated_minutes_ago(minutes: float, now: datetime = NOW) -> int:
    return int((now - timedelta(minutes=minutes)).timestamp())


def feed_responses(
    updated_at: int,
    answer: int = 200_000_000_000,
    decimals: int = 8,
    description: str = "ETH / USD",
) -> dict[str, bytes | Exception]:
    return {
        "description": encode(["string"], [description]),
        "decimals": encode(["uint8"], [decimals]),
        "latestRoundData": encode(
            ROUND_TYPES,
            [ROUND_ID, answer, max(updated_at - 12, 0), updated_at, ROUND_ID],
        ),
    }


class FakeCapability:
    """In-memory read capability with controllable completion order."""

    def __init__(
        self,
        responses: dict[str, bytes | Exception],
        completion_order: list[str] | None = None,
        require_all_started: bool = False,
        hang: set[str] | None = None,
    ) -> None:
        self.responses = responses
        self.completion_order = completion_order or []
        self.require_all_started = require_all_started
        self.hang = hang or set()
        self.calls: list[ContractCall] = []
        self.networks: list[NetworkHandle] = []
        self.completed: list[str] = []
        self.cancelled: list[str] = []
        self._done = {name: asyncio.Event() for name in responses}
        self._all_started = asyncio.Event()
        self._never = asyncio.Event()

    async def __aenter__(self) -> "FakeCapability":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def call_contract(self, network: NetworkHandle, call: ContractCall) -> bytes:
        name = call.function_name
        self.calls.append(call)
        self.networks.append(network)
        if len(self.calls) == len(self.responses):
            self._all_started.set()

        try:
            if self.require_all_started:
                await self._all_started.wait()
            if name in self.hang:
                await self._never.wait()
            if name in self.completion_order:
                position = self.completion_order.index(name)
                if position > 0:
                    await self._done[self.completion_order[position - 1]].wait()

            response = self.responses[name]
            if isinstance(response, Exception):
                raise response
            self.completed.append(name)
            return response
        except asyncio.CancelledError:
            self.cancelled.append(name)
            raise
        finally:
            self._done[name].set()
