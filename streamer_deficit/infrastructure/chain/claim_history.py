"""Summing past ``Claimed`` events of a stream contract."""
from __future__ import annotations

import logging

from eth_utils import encode_hex, event_abi_to_log_topic

from streamer_deficit.domain.errors import LogParsingError
from streamer_deficit.domain.models import ClaimTotals, StreamVersion
from streamer_deficit.domain.repositories import Abi, ChainGateway
from streamer_deficit.infrastructure.chain.abi_store import find_event_abi

logger = logging.getLogger(__name__)

CLAIMED_EVENT = "Claimed"
DEFAULT_WINDOW = 9_000
SEARCH_SLACK_SECONDS = 86_400

# (streaming amount, native amount) argument names per contract version
CLAIM_FIELDS: dict[StreamVersion, tuple[str, str]] = {
    StreamVersion.V1: ("compAmount", "usdcAmount"),
    StreamVersion.V2: ("streamingAssetAmount", "nativeAssetAmount"),
}


def search_start_timestamp(start: int) -> int:
    return start - SEARCH_SLACK_SECONDS if start > SEARCH_SLACK_SECONDS else 0


def iter_windows(from_block: int, ceiling_block: int, window: int):
    if window < 1:
        raise ValueError(f"window must be positive, got {window}")
    lo = from_block
    while lo <= ceiling_block:
        hi = min(lo + window - 1, ceiling_block)
        yield lo, hi
        lo = hi + 1


async def aggregate_claims(
    gateway: ChainGateway,
    abi: Abi,
    address: str,
    version: StreamVersion,
    from_block: int,
    ceiling_block: int,
    window: int = DEFAULT_WINDOW,
) -> ClaimTotals:
    """Scan ``[from_block, ceiling_block]`` in disjoint windows and total the claims."""
    event_abi = find_event_abi(abi, CLAIMED_EVENT)
    if event_abi is None:
        logger.warning("ABI for %s has no %s event; reporting zero claims", address, CLAIMED_EVENT)
        return ClaimTotals()

    topic = encode_hex(event_abi_to_log_topic(dict(event_abi)))
    streaming_field, native_field = CLAIM_FIELDS[version]
    total_streaming = 0
    total_native = 0
    skipped = 0

    for lo, hi in iter_windows(from_block, ceiling_block, window):
        logs = await gateway.get_logs(address, topic, lo, hi)
        for log in logs:
            try:
                args = gateway.decode_event(address, abi, CLAIMED_EVENT, log)
            except LogParsingError as exc:
                skipped += 1
                logger.debug("Skipping log in %s-%s: %s", lo, hi, exc)
                continue
            total_streaming += int(args[streaming_field])
            total_native += int(args[native_field])

    if skipped:
        logger.warning("Skipped %s undecodable %s logs for %s", skipped, CLAIMED_EVENT, address)
    return ClaimTotals(
        total_streaming_claimed=total_streaming,
        total_native_claimed=total_native,
        skipped_logs=skipped,
    )
