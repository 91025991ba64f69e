"""Concurrent dispatch of the feed read calls against a read capability."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from feed_health.core.errors import CallFailureError
from feed_health.core.types import CallResult, ContractCall, NetworkHandle

logger = logging.getLogger(__name__)


class ReadCapability(Protocol):
    """External read-only contract call capability; safe to invoke concurrently."""

    async def call_contract(self, network: NetworkHandle, call: ContractCall) -> bytes:
        ...


async def _read(capability: ReadCapability, network: NetworkHandle, call: ContractCall) -> CallResult:
    data = await capability.call_contract(network, call)
    return CallResult(function_name=call.function_name, data=bytes(data))


async def _cancel(tasks: Sequence[asyncio.Task[CallResult]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def dispatch_calls(
    capability: ReadCapability,
    network: NetworkHandle,
    calls: Sequence[ContractCall],
) -> dict[str, CallResult]:
    """Submit every call before awaiting any, then join on all of them.

    The first failing call aborts the dispatch: the remaining calls are
    cancelled and CallFailureError names the failed call. Results are keyed by
    function name so arrival order does not matter.
    """

    tasks = {
        call.function_name: asyncio.create_task(
            _read(capability, network, call), name=f"call:{call.function_name}"
        )
        for call in calls
    }
    logger.debug(
        "feed_calls_dispatched",
        extra={"calls": list(tasks), "network": network.chain_selector_name},
    )

    pending = set(tasks.values())
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            for name, task in tasks.items():
                if task not in done or task.cancelled():
                    continue
                exc = task.exception()
                if exc is None:
                    continue
                await _cancel(list(pending))
                if isinstance(exc, CallFailureError):
                    raise exc
                raise CallFailureError(name, str(exc) or type(exc).__name__) from exc
    except asyncio.CancelledError:
        await _cancel(list(pending))
        raise

    return {name: task.result() for name, task in tasks.items()}
