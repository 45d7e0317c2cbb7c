"""Domain models for the streamer deficit report.

Amounts are raw integers in the token's own decimal precision. The matching
exponent travels alongside them (``native_decimals``/``streaming_decimals``).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StreamVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"


class ClaimAsset(str, Enum):
    """Denomination of a stream's native value, derived from its price oracle."""

    USDC = "USDC"
    USD = "USD"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class StreamTarget:
    """Registry entry for a stream contract we report on."""

    address: str
    vendor: str
    version: StreamVersion


@dataclass(frozen=True)
class StreamFacts:
    """Point-in-time snapshot of one stream, normalized across contract versions.

    The on-chain conversion functions are evaluated at the same block as every
    other read and captured here as converted amounts.
    """

    version: StreamVersion
    address: str
    streaming_asset: str
    streaming_is_governance_asset: bool
    claim_asset: ClaimAsset
    native_decimals: int
    streaming_decimals: int
    nominal_total_native: int
    effective_total_native: int
    supplied_native: int
    start: int
    duration: int
    effective_end: int
    owed_native: int
    streaming_balance: int
    governance_balance: int
    governance_decimals: int
    streaming_needed_for_owed: int
    claimable_native: int
    native_from_balance: int
    native_from_surplus: int
    block_number: int
    evaluated_at: int

    @property
    def claimable_streaming(self) -> int:
        return min(self.streaming_balance, self.streaming_needed_for_owed)


@dataclass(frozen=True)
class ClaimTotals:
    total_streaming_claimed: int = 0
    total_native_claimed: int = 0
    skipped_logs: int = 0


@dataclass(frozen=True)
class DeficitMetrics:
    claimable_streaming: int
    claimable_native: int
    budget_seconds: int
    remaining_seconds: int
    deficit_seconds: int
    required_top_up: int
    unclaimable_value: int
    total_budget: int


@dataclass(frozen=True)
class ReportRow:
    """One formatted line of the deficit report."""

    address: str
    vendor: str
    claim_asset: str
    claimed_amount: str
    comp_balance: str
    available_to_claim_comp: str
    available_to_claim_native: str
    stream_finish_ts: str
    stream_finish_utc: str
    budget_for_days: str
    days_deficit: str
    required_top_up: str
    avg_claim_comp_price: str
    unclaimable_value: str
    total_budget: str
    projected_remaining: str = ""
