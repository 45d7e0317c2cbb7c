"""Version-specific on-chain reads normalized into ``StreamFacts``."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from streamer_deficit.config import (
    COMP_TOKEN_ADDRESS,
    USD_CONSTANT_ORACLE_ADDRESS,
    USDC_ORACLE_ADDRESS,
    USDC_TOKEN_ADDRESS,
)
from streamer_deficit.domain.errors import ChainReadError
from streamer_deficit.domain.models import ClaimAsset, StreamFacts, StreamTarget, StreamVersion
from streamer_deficit.domain.repositories import Abi, ChainGateway
from streamer_deficit.infrastructure.chain.abi_store import ERC20_ABI, StreamerAbis

logger = logging.getLogger(__name__)


def classify_oracle(oracle: str) -> ClaimAsset:
    normalized = oracle.lower()
    if normalized == USDC_ORACLE_ADDRESS:
        return ClaimAsset.USDC
    if normalized == USD_CONSTANT_ORACLE_ADDRESS:
        return ClaimAsset.USD
    return ClaimAsset.UNKNOWN


def effective_total(nominal: int, start: int, duration: int, stream_end: int) -> int:
    """Nominal amount pro-rated to an early stream end; never larger than nominal."""
    if start > 0 and stream_end > 0 and duration > 0 and stream_end < start + duration:
        return nominal * (stream_end - start) // duration
    return nominal


@dataclass(frozen=True)
class _Balances:
    """Streaming-asset balance split into the claimable part and the surplus."""

    streaming_balance: int
    needed_for_owed: int
    claimable_native: int
    native_from_balance: int
    native_from_surplus: int


class _PinnedReader:
    """Issues every call for one target against a single block."""

    def __init__(self, gateway: ChainGateway, abi: Abi, address: str, block: int) -> None:
        self._gateway = gateway
        self._abi = abi
        self.address = address
        self.block = block

    async def stream(self, function: str, *args: Any) -> Any:
        return await self._gateway.call(self.address, self._abi, function, *args, block=self.block)

    async def token(self, token: str, function: str, *args: Any) -> Any:
        return await self._gateway.call(token, ERC20_ABI, function, *args, block=self.block)

    async def convert(self, function: str, amount: int) -> int:
        if amount <= 0:
            return 0
        return int(await self.stream(function, amount))

    async def balances(self, streaming_balance: int, needed_for_owed: int, owed: int, to_native: str) -> _Balances:
        claimable_streaming = min(streaming_balance, needed_for_owed)
        surplus = streaming_balance - claimable_streaming
        native_from_balance, native_from_surplus = await asyncio.gather(
            self.convert(to_native, streaming_balance),
            self.convert(to_native, surplus),
        )
        claimable_native = owed if streaming_balance >= needed_for_owed else native_from_balance
        return _Balances(
            streaming_balance=streaming_balance,
            needed_for_owed=needed_for_owed,
            claimable_native=claimable_native,
            native_from_balance=native_from_balance,
            native_from_surplus=native_from_surplus,
        )


async def _read_v1(reader: _PinnedReader, evaluated_at: int) -> StreamFacts:
    (
        stream_amount,
        duration,
        start,
        supplied,
        owed,
        comp_decimals,
        usdc_decimals,
    ) = await asyncio.gather(
        reader.stream("STREAM_AMOUNT"),
        reader.stream("STREAM_DURATION"),
        reader.stream("startTimestamp"),
        reader.stream("suppliedAmount"),
        reader.stream("getAmountOwed"),
        reader.token(COMP_TOKEN_ADDRESS, "decimals"),
        reader.token(USDC_TOKEN_ADDRESS, "decimals"),
    )
    comp_balance, comp_needed = await asyncio.gather(
        reader.token(COMP_TOKEN_ADDRESS, "balanceOf", reader.address),
        reader.convert("calculateCompAmount", int(owed)),
    )
    balances = await reader.balances(int(comp_balance), int(comp_needed), int(owed), "calculateUsdcAmount")

    start, duration = int(start), int(duration)
    stream_end = 0 if start == 0 else start + duration
    return StreamFacts(
        version=StreamVersion.V1,
        address=reader.address,
        streaming_asset=COMP_TOKEN_ADDRESS,
        streaming_is_governance_asset=True,
        claim_asset=ClaimAsset.USDC,
        native_decimals=int(usdc_decimals),
        streaming_decimals=int(comp_decimals),
        nominal_total_native=int(stream_amount),
        effective_total_native=int(stream_amount),
        supplied_native=int(supplied),
        start=start,
        duration=duration,
        effective_end=stream_end,
        owed_native=int(owed),
        streaming_balance=balances.streaming_balance,
        governance_balance=int(comp_balance),
        governance_decimals=int(comp_decimals),
        streaming_needed_for_owed=balances.needed_for_owed,
        claimable_native=balances.claimable_native,
        native_from_balance=balances.native_from_balance,
        native_from_surplus=balances.native_from_surplus,
        block_number=reader.block,
        evaluated_at=evaluated_at,
    )


async def _read_v2(reader: _PinnedReader, evaluated_at: int) -> StreamFacts:
    (
        streaming_asset,
        oracle,
        nominal,
        supplied,
        duration,
        stream_end,
        start,
        native_decimals,
        owed,
        streaming_decimals,
        comp_decimals,
    ) = await asyncio.gather(
        reader.stream("streamingAsset"),
        reader.stream("nativeAssetOracle"),
        reader.stream("nativeAssetStreamingAmount"),
        reader.stream("nativeAssetSuppliedAmount"),
        reader.stream("streamDuration"),
        reader.stream("getStreamEnd"),
        reader.stream("startTimestamp"),
        reader.stream("nativeAssetDecimals"),
        reader.stream("getNativeAssetAmountOwed"),
        reader.stream("streamingAssetDecimals"),
        reader.token(COMP_TOKEN_ADDRESS, "decimals"),
    )
    streaming_balance, comp_balance, needed = await asyncio.gather(
        reader.token(streaming_asset, "balanceOf", reader.address),
        reader.token(COMP_TOKEN_ADDRESS, "balanceOf", reader.address),
        reader.convert("calculateStreamingAssetAmount", int(owed)),
    )
    balances = await reader.balances(
        int(streaming_balance), int(needed), int(owed), "calculateNativeAssetAmount"
    )

    nominal, start, duration, stream_end = int(nominal), int(start), int(duration), int(stream_end)
    return StreamFacts(
        version=StreamVersion.V2,
        address=reader.address,
        streaming_asset=str(streaming_asset),
        streaming_is_governance_asset=str(streaming_asset).lower() == COMP_TOKEN_ADDRESS.lower(),
        claim_asset=classify_oracle(str(oracle)),
        native_decimals=int(native_decimals),
        streaming_decimals=int(streaming_decimals),
        nominal_total_native=nominal,
        effective_total_native=effective_total(nominal, start, duration, stream_end),
        supplied_native=int(supplied),
        start=start,
        duration=duration,
        effective_end=stream_end,
        owed_native=int(owed),
        streaming_balance=balances.streaming_balance,
        governance_balance=int(comp_balance),
        governance_decimals=int(comp_decimals),
        streaming_needed_for_owed=balances.needed_for_owed,
        claimable_native=balances.claimable_native,
        native_from_balance=balances.native_from_balance,
        native_from_surplus=balances.native_from_surplus,
        block_number=reader.block,
        evaluated_at=evaluated_at,
    )


_READERS = {
    StreamVersion.V1: _read_v1,
    StreamVersion.V2: _read_v2,
}


async def read_stream_facts(
    gateway: ChainGateway,
    abis: StreamerAbis,
    target: StreamTarget,
    block: int | None = None,
    now: int | None = None,
) -> StreamFacts:
    """Snapshot ``target`` at ``block`` (latest when omitted).

    With a pinned block the evaluation time is that block's timestamp;
    otherwise it is ``now`` or the wall clock.
    """
    if block is None:
        pinned = await gateway.block_number()
        evaluated_at = int(time.time()) if now is None else now
    else:
        pinned = block
        block_ts = await gateway.block_timestamp(block)
        if block_ts is None:
            raise ChainReadError(f"Block {block} is not available from the node")
        evaluated_at = block_ts

    logger.debug("Reading %s stream %s at block %s", target.version.value, target.address, pinned)
    reader = _PinnedReader(gateway, abis.for_version(target.version), target.address, pinned)
    return await _READERS[target.version](reader, evaluated_at)
