"""Concurrent fan-out/fan-in dispatch of the feed calls."""

import asyncio

import pytest

from fakes import FEED_ADDRESS, FakeCapability, base_network, feed_responses, updated_minutes_ago
from feed_health.core.errors import CallFailureError
from feed_health.monitor.abi import REQUIRED_CALLS, build_calls
from feed_health.monitor.dispatcher import dispatch_calls


def _dispatch(capability: FakeCapability) -> dict:
    async def run() -> dict:
        return await asyncio.wait_for(
            dispatch_calls(capability, base_network(), build_calls(FEED_ADDRESS)),
            timeout=5,
        )

    return asyncio.run(run())


def test_all_calls_are_submitted_before_any_resolves() -> None:
    """Each fake call blocks until all three have started; sequential dispatch would time out."""

    capability = FakeCapability(feed_responses(updated_minutes_ago(5)), require_all_started=True)

    results = _dispatch(capability)

    assert set(results) == set(REQUIRED_CALLS)
    assert {network.chain_selector_name for network in capability.networks} == {
        "ethereum-mainnet-base-1"
    }


@pytest.mark.parametrize(
    "order",
    [
        ["description", "decimals", "latestRoundData"],
        ["latestRoundData", "decimals", "description"],
        ["decimals", "latestRoundData", "description"],
    ],
)
def test_results_do_not_depend_on_arrival_order(order: list[str]) -> None:
    """Results are keyed by function name whatever order they complete in."""

    responses = feed_responses(updated_minutes_ago(5))
    capability = FakeCapability(responses, completion_order=order)

    results = _dispatch(capability)

    assert capability.completed == order
    assert {name: result.data for name, result in results.items()} == responses


def test_first_failure_aborts_and_cancels_the_rest() -> None:
    """A failing call aborts dispatch without waiting on calls still in flight."""

    responses = feed_responses(updated_minutes_ago(5))
    responses["decimals"] = ConnectionError("node unreachable")
    capability = FakeCapability(responses, hang={"description", "latestRoundData"})

    with pytest.raises(CallFailureError) as exc_info:
        _dispatch(capability)

    assert exc_info.value.call_name == "decimals"
    assert "node unreachable" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert sorted(capability.cancelled) == ["description", "latestRoundData"]


def test_failure_message_falls_back_to_exception_type() -> None:
    """Errors without a message are still identifiable."""

    responses = feed_responses(updated_minutes_ago(5))
    responses["latestRoundData"] = TimeoutError()
    capability = FakeCapability(responses)

    with pytest.raises(CallFailureError, match=r"latestRoundData\(\) call failed: TimeoutError"):
        _dispatch(capability)
