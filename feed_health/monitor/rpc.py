"""EVM JSON-RPC read capability over websockets.

One connection per network is opened lazily and shared by concurrent calls;
responses are matched to requests by JSON-RPC id.
"""

import asyncio
import inspect
import itertools
import json
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from feed_health.core.config import Settings
from feed_health.core.types import ContractCall, NetworkHandle

_WS_PING_INTERVAL_S = 30

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """JSON-RPC error response or transport failure."""


def _websocket_connect_kwargs() -> dict[str, Any]:
    kwargs: dict[str, Any] = {"ping_interval": _WS_PING_INTERVAL_S}
    if "proxy" in inspect.signature(websockets.connect).parameters:
        kwargs["proxy"] = None
    return kwargs


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        message = str(error.get("message") or "unknown error")
        if error.get("code") is not None:
            message = f"{message} (code {error['code']})"
        if isinstance(error.get("data"), str) and error["data"]:
            message = f"{message}: {error['data']}"
        return message
    return str(error)


def _hex_to_bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise RpcError(f"expected hex string result, got {value!r}")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as exc:
        raise RpcError(f"malformed hex result: {value!r}") from exc


class RpcConnection:
    """Single websocket JSON-RPC session multiplexing concurrent requests."""

    def __init__(self, url: str, timeout_s: float) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._ws: Any = None
        self._reader: asyncio.Task[None] | None = None
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._ids = itertools.count(1)

    async def open(self) -> None:
        try:
            self._ws = await asyncio.wait_for(
                websockets.connect(self.url, **_websocket_connect_kwargs()),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise RpcError(f"timed out connecting to {self.url}") from exc
        except (OSError, WebSocketException) as exc:
            raise RpcError(f"cannot connect to {self.url}: {exc}") from exc
        self._reader = asyncio.create_task(self._read_loop(), name="rpc-reader")

    async def request(self, method: str, params: list[Any]) -> Any:
        if self._ws is None:
            raise RuntimeError("rpc connection is not open")

        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        message = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        try:
            await self._ws.send(json.dumps(message, ensure_ascii=True, separators=(",", ":")))
            return await asyncio.wait_for(future, timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise RpcError(f"{method} timed out after {self.timeout_s}s") from exc
        except ConnectionClosed as exc:
            raise RpcError(f"connection closed: {exc}") from exc
        finally:
            self._pending.pop(request_id, None)

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            await asyncio.gather(self._reader, return_exceptions=True)
            self._reader = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        self._fail_pending(RpcError("connection closed"))

    def _fail_pending(self, exc: RpcError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(exc)

    async def _read_loop(self) -> None:
        try:
            async for raw_message in self._ws:
                try:
                    payload = json.loads(raw_message)
                except json.JSONDecodeError:
                    logger.warning("rpc_invalid_json_message", extra={"url": self.url})
                    continue
                if not isinstance(payload, dict):
                    continue

                future = self._pending.get(payload.get("id"))
                if future is None or future.done():
                    continue

                if payload.get("error") is not None:
                    future.set_exception(RpcError(_error_message(payload["error"])))
                else:
                    future.set_result(payload.get("result"))
        except ConnectionClosed as exc:
            self._fail_pending(RpcError(f"connection closed: {exc}"))
        else:
            self._fail_pending(RpcError("connection closed"))


class JsonRpcReadCapability:
    """Read capability issuing eth_call against configured websocket RPC endpoints."""

    def __init__(self, rpc_urls: Mapping[str, str], timeout_s: float = 15.0) -> None:
        self.rpc_urls = {name.lower(): url for name, url in rpc_urls.items()}
        self.timeout_s = timeout_s
        self._connections: dict[str, RpcConnection] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "JsonRpcReadCapability":
        return cls(settings.rpc_urls(), timeout_s=settings.RPC_TIMEOUT_S)

    async def __aenter__(self) -> "JsonRpcReadCapability":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        connections = list(self._connections.values())
        self._connections.clear()
        for connection in connections:
            await connection.close()

    async def _connection(self, network: NetworkHandle) -> RpcConnection:
        async with self._lock:
            connection = self._connections.get(network.chain_selector_name)
            if connection is not None:
                return connection

            url = self.rpc_urls.get(network.chain_selector_name)
            if not url:
                raise RpcError(f"no RPC URL configured for {network.chain_selector_name}")

            connection = RpcConnection(url, self.timeout_s)
            await connection.open()
            try:
                chain_id = int(await connection.request("eth_chainId", []), 16)
            except (RpcError, TypeError, ValueError) as exc:
                await connection.close()
                raise RpcError(f"cannot verify chain id at {url}: {exc}") from exc
            if chain_id != network.chain_id:
                await connection.close()
                raise RpcError(
                    f"{url} serves chain {chain_id}, expected {network.chain_id} "
                    f"({network.chain_selector_name})"
                )

            logger.info(
                "rpc_connected",
                extra={"network": network.chain_selector_name, "chain_id": chain_id},
            )
            self._connections[network.chain_selector_name] = connection
            return connection

    async def call_contract(self, network: NetworkHandle, call: ContractCall) -> bytes:
        """Run eth_call pinned to the call's block reference and return the raw bytes."""

        connection = await self._connection(network)
        params = [
            {"from": call.from_address, "to": call.to, "data": "0x" + call.data.hex()},
            call.block.value,
        ]
        return _hex_to_bytes(await connection.request("eth_call", params))
