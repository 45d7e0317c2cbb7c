"""Application services orchestrating the deficit report workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from streamer_deficit.application.dto import ReportRequest
from streamer_deficit.domain.errors import ConfigurationError
from streamer_deficit.domain.models import DeficitMetrics, ReportRow, StreamTarget
from streamer_deficit.domain.repositories import ChainGateway
from streamer_deficit.domain.results import DeficitReport, summarize
from streamer_deficit.domain.services import build_report_row, compute_deficit
from streamer_deficit.infrastructure.chain.abi_store import StreamerAbis
from streamer_deficit.infrastructure.chain.block_resolver import resolve_block_at_or_before
from streamer_deficit.infrastructure.chain.claim_history import aggregate_claims, search_start_timestamp
from streamer_deficit.infrastructure.chain.stream_reader import read_stream_facts
from streamer_deficit.infrastructure.simulation.fork_simulator import ClaimSimulator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class DeficitReportContext:
    gateway: ChainGateway
    abis: StreamerAbis
    targets: Sequence[StreamTarget]
    simulator: ClaimSimulator | None = None
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def close(self) -> None:
        try:
            await self.gateway.close()
        finally:
            if self.simulator is not None:
                await self.simulator.close()


class GenerateDeficitReportUseCase:
    """Builds one row per registry target, in registry order.

    Targets run one after another: the claim simulator resets a single shared
    fork, so two simulations must never overlap.
    """

    def __init__(self, context: DeficitReportContext) -> None:
        self._context = context

    async def execute(self, request: ReportRequest) -> DeficitReport:
        context = self._context
        if request.simulate and context.simulator is None:
            raise ConfigurationError("Simulation requested but no fork sandbox is configured")

        generated_at = context.clock()
        now = int(generated_at.timestamp())
        rows: list[ReportRow] = []
        metrics: list[DeficitMetrics] = []
        skipped_logs = 0
        evaluated_block = request.block

        for index, target in enumerate(context.targets, start=1):
            logger.info("[%s/%s] %s (%s) %s", index, len(context.targets), target.vendor, target.version.value, target.address)
            facts = await read_stream_facts(context.gateway, context.abis, target, block=request.block, now=now)
            if evaluated_block is None:
                evaluated_block = facts.block_number

            from_block = await resolve_block_at_or_before(
                context.gateway, search_start_timestamp(facts.start), facts.block_number
            )
            claims = await aggregate_claims(
                context.gateway,
                context.abis.for_version(target.version),
                target.address,
                target.version,
                from_block,
                facts.block_number,
                window=request.log_window,
            )
            skipped_logs += claims.skipped_logs

            target_metrics = compute_deficit(facts)
            simulated_remaining = None
            if request.simulate:
                simulated_remaining = await context.simulator.simulate(
                    target, facts, request.time_advance_seconds, request.block
                )

            rows.append(build_report_row(target, facts, claims, target_metrics, simulated_remaining))
            metrics.append(target_metrics)

        return summarize(
            rows,
            metrics,
            skipped_logs=skipped_logs,
            block_number=evaluated_block,
            generated_at=generated_at,
        )


async def run_report(context: DeficitReportContext, request: ReportRequest) -> DeficitReport:
    """Execute the report and release the context's node connections afterwards."""
    try:
        return await GenerateDeficitReportUseCase(context).execute(request)
    finally:
        await context.close()
