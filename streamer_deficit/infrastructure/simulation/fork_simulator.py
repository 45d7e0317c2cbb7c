"""What-if claim execution on a forked copy of the chain."""
from __future__ import annotations

import asyncio
import logging

from streamer_deficit.domain.errors import SimulationError
from streamer_deficit.domain.models import StreamFacts, StreamTarget, StreamVersion
from streamer_deficit.domain.repositories import ForkSandbox
from streamer_deficit.infrastructure.chain.abi_store import StreamerAbis

logger = logging.getLogger(__name__)

SUPPLIED_FUNCTION = {
    StreamVersion.V1: "suppliedAmount",
    StreamVersion.V2: "nativeAssetSuppliedAmount",
}
GAS_FUNDING_WEI = 10 * 10**18


class ClaimSimulator:
    """Owns the fork sandbox; callers must not run two simulations at once."""

    def __init__(
        self,
        sandbox: ForkSandbox,
        abis: StreamerAbis,
        upstream_url: str,
        receipt_attempts: int = 20,
        receipt_interval: float = 0.5,
    ) -> None:
        self._sandbox = sandbox
        self._abis = abis
        self._upstream_url = upstream_url
        self._receipt_attempts = receipt_attempts
        self._receipt_interval = receipt_interval

    async def close(self) -> None:
        await self._sandbox.close()

    async def simulate(
        self,
        target: StreamTarget,
        facts: StreamFacts,
        time_advance_seconds: int,
        fork_block: int | None = None,
    ) -> int:
        """Claim on a fresh fork after ``time_advance_seconds`` and return the native amount still to supply."""
        sandbox = self._sandbox
        abi = self._abis.for_version(target.version)

        await sandbox.reset(self._upstream_url, fork_block)
        if time_advance_seconds > 0:
            await sandbox.increase_time(time_advance_seconds)
        await sandbox.mine()

        recipient = str(await sandbox.call(target.address, abi, "recipient"))
        await sandbox.impersonate(recipient)
        try:
            await sandbox.set_balance(recipient, GAS_FUNDING_WEI)
            tx_hash = await sandbox.send_transaction(
                {"from": recipient, "to": target.address, "data": sandbox.encode_call(abi, "claim")}
            )
            receipt = await self._wait_for_receipt(tx_hash)
        finally:
            await sandbox.stop_impersonating(recipient)

        if int(receipt.get("status", 0)) != 1:
            raise SimulationError(f"claim() reverted on fork for {target.vendor} ({target.address}), tx {tx_hash}")

        supplied_after = int(await sandbox.call(target.address, abi, SUPPLIED_FUNCTION[target.version]))
        remaining = max(facts.effective_total_native - supplied_after, 0)
        logger.info(
            "Simulated claim for %s: supplied %s -> %s, remaining %s",
            target.vendor,
            facts.supplied_native,
            supplied_after,
            remaining,
        )
        return remaining

    async def _wait_for_receipt(self, tx_hash: str):
        for attempt in range(self._receipt_attempts):
            receipt = await self._sandbox.get_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if attempt + 1 < self._receipt_attempts:
                await asyncio.sleep(self._receipt_interval)
        raise SimulationError(f"No receipt for claim transaction {tx_hash} after {self._receipt_attempts} polls")
