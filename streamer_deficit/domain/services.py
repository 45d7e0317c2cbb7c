"""Domain services turning stream snapshots into deficit metrics and report rows."""
from __future__ import annotations

from .decimal_math import format_units, format_unix_ts, ratio_to_decimal_string, seconds_to_days
from .models import ClaimTotals, DeficitMetrics, ReportRow, StreamFacts, StreamTarget

NOT_GOVERNANCE_ASSET = "n/a (streaming asset is not COMP)"


def compute_deficit(facts: StreamFacts) -> DeficitMetrics:
    """Budget and deficit figures for a single stream snapshot.

    Integer arithmetic throughout, multiplying before dividing. The
    unclaimable value and total budget are reconciliation heuristics rather
    than protocol quantities.
    """
    claimable_streaming = facts.claimable_streaming
    native_from_balance = facts.native_from_balance

    remaining_seconds = max(facts.effective_end - facts.evaluated_at, 0)
    if facts.nominal_total_native > 0:
        budget_seconds = native_from_balance * facts.duration // facts.nominal_total_native
    else:
        budget_seconds = 0
    deficit_seconds = max(remaining_seconds - budget_seconds, 0)

    remaining_required = max(facts.effective_total_native - facts.supplied_native, 0)
    required_top_up = max(remaining_required - native_from_balance, 0)

    if facts.duration > 0:
        scheduled_remaining = facts.nominal_total_native * remaining_seconds // facts.duration
    else:
        scheduled_remaining = 0
    unclaimable_value = min(scheduled_remaining, facts.native_from_surplus)

    total_budget = facts.supplied_native + facts.claimable_native + unclaimable_value + required_top_up

    return DeficitMetrics(
        claimable_streaming=claimable_streaming,
        claimable_native=facts.claimable_native,
        budget_seconds=budget_seconds,
        remaining_seconds=remaining_seconds,
        deficit_seconds=deficit_seconds,
        required_top_up=required_top_up,
        unclaimable_value=unclaimable_value,
        total_budget=total_budget,
    )


def average_claim_price(facts: StreamFacts, claims: ClaimTotals) -> str:
    """Native units paid per whole streaming token across all past claims."""
    if claims.total_streaming_claimed == 0:
        return "0"
    return ratio_to_decimal_string(
        claims.total_native_claimed * 10**facts.streaming_decimals,
        claims.total_streaming_claimed * 10**facts.native_decimals,
        6,
    )


def build_report_row(
    target: StreamTarget,
    facts: StreamFacts,
    claims: ClaimTotals,
    metrics: DeficitMetrics,
    simulated_remaining: int | None = None,
) -> ReportRow:
    native = facts.native_decimals
    finish_ts, finish_utc = format_unix_ts(facts.effective_end)
    if facts.streaming_is_governance_asset:
        claimable_comp = format_units(metrics.claimable_streaming, facts.streaming_decimals)
    else:
        claimable_comp = NOT_GOVERNANCE_ASSET

    return ReportRow(
        address=target.address,
        vendor=target.vendor,
        claim_asset=facts.claim_asset.value,
        claimed_amount=format_units(facts.supplied_native, native),
        comp_balance=format_units(facts.governance_balance, facts.governance_decimals),
        available_to_claim_comp=claimable_comp,
        available_to_claim_native=format_units(metrics.claimable_native, native),
        stream_finish_ts=finish_ts,
        stream_finish_utc=finish_utc,
        budget_for_days=seconds_to_days(metrics.budget_seconds),
        days_deficit=seconds_to_days(metrics.deficit_seconds),
        required_top_up=format_units(metrics.required_top_up, native),
        avg_claim_comp_price=average_claim_price(facts, claims),
        unclaimable_value=format_units(metrics.unclaimable_value, native),
        total_budget=format_units(metrics.total_budget, native),
        projected_remaining="" if simulated_remaining is None else format_units(simulated_remaining, native),
    )
