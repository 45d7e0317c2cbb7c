"""In-memory stand-ins for the chain gateway and the fork sandbox."""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from streamer_deficit.config import COMP_TOKEN_ADDRESS, USDC_TOKEN_ADDRESS
from streamer_deficit.domain.errors import LogParsingError
from streamer_deficit.domain.models import ClaimAsset, StreamFacts, StreamVersion
from streamer_deficit.infrastructure.chain.abi_store import StreamerAbis


def claimed_event(streaming_field: str, native_field: str) -> dict[str, Any]:
    return {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "recipient", "type": "address"},
            {"indexed": False, "name": streaming_field, "type": "uint256"},
            {"indexed": False, "name": native_field, "type": "uint256"},
        ],
        "name": "Claimed",
        "type": "event",
    }


V1_ABI = (claimed_event("compAmount", "usdcAmount"),)
V2_ABI = (claimed_event("streamingAssetAmount", "nativeAssetAmount"),)
TEST_ABIS = StreamerAbis(v1=V1_ABI, v2=V2_ABI)


class FakeChainGateway:
    """Serves block timestamps, contract calls and logs from plain Python data.

    ``calls`` maps ``(address_lower, function)`` to a value, to a callable
    receiving the call arguments, or to a mapping keyed by the lowercased
    first argument (token balances per owner).
    """

    def __init__(
        self,
        timestamps: Iterable[int] = (),
        calls: Mapping[tuple[str, str], Any] | None = None,
        logs: Iterable[Mapping[str, Any]] = (),
        missing_blocks: Iterable[int] = (),
    ) -> None:
        self.timestamps = list(timestamps)
        self.calls = dict(calls or {})
        self.logs = list(logs)
        self.missing_blocks = set(missing_blocks)
        self.call_log: list[tuple[str, str, tuple[Any, ...], Any]] = []
        self.log_queries: list[tuple[int, int]] = []
        self.probed: list[int] = []
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def block_number(self) -> int:
        return len(self.timestamps) - 1

    async def block_timestamp(self, number: int) -> int | None:
        self.probed.append(number)
        if number in self.missing_blocks or not 0 <= number < len(self.timestamps):
            return None
        return self.timestamps[number]

    async def call(self, address: str, abi: Any, function: str, *args: Any, block: Any = "latest") -> Any:
        self.call_log.append((address.lower(), function, args, block))
        value = self.calls[(address.lower(), function)]
        if callable(value):
            return value(*args)
        if isinstance(value, Mapping):
            return value[str(args[0]).lower()]
        return value

    async def get_logs(self, address: str, topic: str, from_block: int, to_block: int) -> list[Mapping[str, Any]]:
        self.log_queries.append((from_block, to_block))
        return [
            log
            for log in self.logs
            if from_block <= log["blockNumber"] <= to_block and log.get("address", address).lower() == address.lower()
        ]

    def decode_event(self, address: str, abi: Any, event: str, log: Mapping[str, Any]) -> Mapping[str, Any]:
        if "args" not in log:
            raise LogParsingError(f"undecodable log at block {log['blockNumber']}")
        return log["args"]


class FakeForkSandbox:
    """Records every sandbox interaction and reports a fixed post-claim supplied amount."""

    def __init__(
        self,
        recipient: str = "0x000000000000000000000000000000000000bEEF",
        supplied_after: int = 0,
        receipts: Iterable[Mapping[str, Any] | None] = ({"status": 1},),
        supplied_functions: Iterable[str] = ("suppliedAmount", "nativeAssetSuppliedAmount"),
    ) -> None:
        self.recipient = recipient
        self.supplied_after = supplied_after
        self.receipts = list(receipts)
        self.supplied_functions = set(supplied_functions)
        self.events: list[tuple[Any, ...]] = []
        self.sent: list[Mapping[str, Any]] = []
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def reset(self, upstream_url: str, fork_block: int | None = None) -> None:
        self.events.append(("reset", upstream_url, fork_block))

    async def increase_time(self, seconds: int) -> None:
        self.events.append(("increase_time", seconds))

    async def mine(self) -> None:
        self.events.append(("mine",))

    async def impersonate(self, account: str) -> None:
        self.events.append(("impersonate", account))

    async def stop_impersonating(self, account: str) -> None:
        self.events.append(("stop_impersonating", account))

    async def set_balance(self, account: str, wei: int) -> None:
        self.events.append(("set_balance", account, wei))

    def encode_call(self, abi: Any, function: str, *args: Any) -> str:
        return "0x4e71d92d" if function == "claim" else "0x"

    async def send_transaction(self, tx: Mapping[str, Any]) -> str:
        self.sent.append(tx)
        self.events.append(("send_transaction", tx["from"]))
        return "0xabc"

    async def get_receipt(self, tx_hash: str) -> Mapping[str, Any] | None:
        self.events.append(("get_receipt", tx_hash))
        if len(self.receipts) > 1:
            return self.receipts.pop(0)
        return self.receipts[0] if self.receipts else None

    async def call(self, address: str, abi: Any, function: str, *args: Any) -> Any:
        self.events.append(("call", function))
        if function == "recipient":
            return self.recipient
        if function in self.supplied_functions:
            return self.supplied_after
        raise KeyError(function)


def merge_calls(*call_maps: Mapping[tuple[str, str], Any]) -> dict[tuple[str, str], Any]:
    """Combine per-target call tables; per-owner balance tables are merged, not replaced."""
    merged: dict[tuple[str, str], Any] = {}
    for calls in call_maps:
        for key, value in calls.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
    return merged


COMP_PRICE_USDC = 50


def comp_to_usdc(comp_amount: int) -> int:
    return comp_amount * COMP_PRICE_USDC * 10**6 // 10**18


def usdc_to_comp(usdc_amount: int) -> int:
    return usdc_amount * 10**18 // (COMP_PRICE_USDC * 10**6)


def v1_stream_calls(
    stream: str,
    *,
    stream_amount: int,
    duration: int,
    start: int,
    supplied: int,
    owed: int,
    comp_balance: int,
) -> dict[tuple[str, str], Any]:
    stream = stream.lower()
    return {
        (stream, "STREAM_AMOUNT"): stream_amount,
        (stream, "STREAM_DURATION"): duration,
        (stream, "startTimestamp"): start,
        (stream, "suppliedAmount"): supplied,
        (stream, "getAmountOwed"): owed,
        (stream, "calculateCompAmount"): usdc_to_comp,
        (stream, "calculateUsdcAmount"): comp_to_usdc,
        (COMP_TOKEN_ADDRESS.lower(), "decimals"): 18,
        (COMP_TOKEN_ADDRESS.lower(), "balanceOf"): {stream: comp_balance},
        (USDC_TOKEN_ADDRESS.lower(), "decimals"): 6,
    }


def v2_stream_calls(
    stream: str,
    *,
    streaming_asset: str,
    oracle: str,
    amount: int,
    supplied: int,
    duration: int,
    start: int,
    stream_end: int,
    owed: int,
    streaming_balance: int,
    comp_balance: int = 0,
    native_decimals: int = 6,
    streaming_decimals: int = 18,
) -> dict[tuple[str, str], Any]:
    stream = stream.lower()
    calls: dict[tuple[str, str], Any] = {
        (stream, "streamingAsset"): streaming_asset,
        (stream, "nativeAssetOracle"): oracle,
        (stream, "nativeAssetStreamingAmount"): amount,
        (stream, "nativeAssetSuppliedAmount"): supplied,
        (stream, "streamDuration"): duration,
        (stream, "getStreamEnd"): stream_end,
        (stream, "startTimestamp"): start,
        (stream, "nativeAssetDecimals"): native_decimals,
        (stream, "getNativeAssetAmountOwed"): owed,
        (stream, "streamingAssetDecimals"): streaming_decimals,
        (stream, "calculateStreamingAssetAmount"): usdc_to_comp,
        (stream, "calculateNativeAssetAmount"): comp_to_usdc,
        (COMP_TOKEN_ADDRESS.lower(), "decimals"): 18,
        (COMP_TOKEN_ADDRESS.lower(), "balanceOf"): {stream: comp_balance},
    }
    balances = calls.setdefault((streaming_asset.lower(), "balanceOf"), {})
    balances[stream] = streaming_balance
    return calls


def make_facts(**overrides: Any) -> StreamFacts:
    """A v1 snapshot one day into a one-year, 1M USDC stream, with overrides applied."""
    now = 1_700_000_000
    base = StreamFacts(
        version=StreamVersion.V1,
        address="0xF088339DD8e79819A41aDD5FFB75d9F245AfaAb1",
        streaming_asset=COMP_TOKEN_ADDRESS,
        streaming_is_governance_asset=True,
        claim_asset=ClaimAsset.USDC,
        native_decimals=6,
        streaming_decimals=18,
        nominal_total_native=1_000_000 * 10**6,
        effective_total_native=1_000_000 * 10**6,
        supplied_native=200_000 * 10**6,
        start=now - 100_000,
        duration=31_536_000,
        effective_end=now - 100_000 + 31_536_000,
        owed_native=1_000 * 10**6,
        streaming_balance=100 * 10**18,
        governance_balance=100 * 10**18,
        governance_decimals=18,
        streaming_needed_for_owed=20 * 10**18,
        claimable_native=1_000 * 10**6,
        native_from_balance=5_000 * 10**6,
        native_from_surplus=4_000 * 10**6,
        block_number=19_000_000,
        evaluated_at=now,
    )
    return replace(base, **overrides)
