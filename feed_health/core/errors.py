"""Fatal error kinds raised by the feed evaluation pipeline."""

from feed_health.core.types import EvaluationStage


class FeedHealthError(Exception):
    """Base class for errors that abort an evaluation without a report."""

    stage = EvaluationStage.FAILED


class ConfigurationError(FeedHealthError):
    """A feed configuration field is missing or invalid."""

    stage = EvaluationStage.VALIDATING

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"invalid config field {field!r}: {message}")
        self.field = field


class NetworkResolutionError(FeedHealthError):
    """The configured chain selector does not map to a known network."""

    stage = EvaluationStage.DISPATCHING

    def __init__(
        self,
        chain_selector_name: str,
        is_testnet: bool,
        known: tuple[str, ...] = (),
    ) -> None:
        kind = "testnet" if is_testnet else "mainnet"
        message = f"network not found: {chain_selector_name} ({kind})"
        if known:
            message = f"{message}; known {kind} networks: {', '.join(known)}"
        super().__init__(message)
        self.chain_selector_name = chain_selector_name
        self.is_testnet = is_testnet


class CallFailureError(FeedHealthError):
    """One of the contract reads failed."""

    stage = EvaluationStage.DISPATCHING

    def __init__(self, call_name: str, message: str) -> None:
        super().__init__(f"{call_name}() call failed: {message}")
        self.call_name = call_name


class DecodeError(FeedHealthError):
    """A call result does not match the expected ABI schema."""

    stage = EvaluationStage.DECODING

    def __init__(self, call_name: str, message: str) -> None:
        super().__init__(f"cannot decode {call_name}() result: {message}")
        self.call_name = call_name
