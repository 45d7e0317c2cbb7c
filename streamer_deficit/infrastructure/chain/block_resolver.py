"""Mapping wall-clock timestamps onto block numbers."""
from __future__ import annotations

import logging

from streamer_deficit.domain.repositories import ChainGateway

logger = logging.getLogger(__name__)


async def resolve_block_at_or_before(
    gateway: ChainGateway,
    target_timestamp: int,
    ceiling_block: int | None = None,
) -> int:
    """Greatest block in ``[0, ceiling_block]`` whose timestamp is <= ``target_timestamp``.

    Non-positive targets map to block 0. Blocks the node cannot serve are
    treated as lying after the target, so the search always terminates.
    Assumes timestamps never decrease with block height.
    """
    if target_timestamp <= 0:
        return 0

    ceiling = await gateway.block_number() if ceiling_block is None else ceiling_block
    ceiling_ts = await gateway.block_timestamp(ceiling)
    if ceiling_ts is None:
        return 0
    if target_timestamp >= ceiling_ts:
        return ceiling

    low, high = 0, ceiling
    probes = 0
    while low < high:
        mid = (low + high + 1) // 2
        ts = await gateway.block_timestamp(mid)
        probes += 1
        if ts is not None and ts <= target_timestamp:
            low = mid
        else:
            high = mid - 1
    logger.debug("Resolved ts=%s to block %s after %s probes", target_timestamp, low, probes)
    return low
