"""Command-line entrypoint for the streamer deficit report."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from streamer_deficit.application.dto import ReportRequest
from streamer_deficit.application.use_cases import DeficitReportContext, run_report
from streamer_deficit.config import STREAM_TARGETS, Settings, load_settings
from streamer_deficit.domain.errors import StreamerDeficitError
from streamer_deficit.domain.results import DeficitReport
from streamer_deficit.infrastructure.chain.abi_store import load_streamer_abis
from streamer_deficit.infrastructure.chain.gateway import Web3ChainGateway
from streamer_deficit.infrastructure.simulation.fork_simulator import ClaimSimulator
from streamer_deficit.infrastructure.simulation.sandbox import Web3ForkSandbox
from streamer_deficit.presentation.deficit_report import write_csv

logger = logging.getLogger("streamer_deficit")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report funding deficits of the COMP streamer contracts")
    parser.add_argument("--block", type=int, help="Evaluate at this block instead of latest")
    parser.add_argument("--output", type=Path, help="CSV output path")
    parser.add_argument("--env-file", type=Path, help="Path to a .env file")
    parser.add_argument("--simulate", action="store_true", help="Project remaining amounts via a forked claim")
    parser.add_argument("--time-advance", type=int, help="Seconds to advance the fork before claiming")
    parser.add_argument("--window", type=int, help="Block window for log queries")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_request(
    settings: Settings,
    block: int | None = None,
    simulate: bool = False,
    time_advance: int | None = None,
    window: int | None = None,
) -> ReportRequest:
    """Fill unset request options from settings."""
    return ReportRequest(
        block=block,
        simulate=simulate,
        time_advance_seconds=time_advance if time_advance is not None else settings.time_advance_seconds,
        log_window=window if window is not None else settings.log_window,
    )


def build_context(settings: Settings, simulate: bool = False) -> DeficitReportContext:
    abis = load_streamer_abis(settings.v1_abi_path, settings.v2_abi_path)
    simulator = None
    if simulate:
        sandbox = Web3ForkSandbox.from_url(settings.fork_rpc_url, settings.rpc_url, settings.request_timeout)
        simulator = ClaimSimulator(
            sandbox,
            abis,
            settings.rpc_url,
            receipt_attempts=settings.receipt_attempts,
            receipt_interval=settings.receipt_interval,
        )
    return DeficitReportContext(
        gateway=Web3ChainGateway.from_url(settings.rpc_url, settings.request_timeout),
        abis=abis,
        targets=STREAM_TARGETS,
        simulator=simulator,
    )


def print_summary(report: DeficitReport) -> None:
    summary = report.summary
    print("Deficit Summary")
    print("===============")
    print(f"Block: {summary.block_number if summary.block_number is not None else 'latest'}")
    print(f"Streams: {summary.total_targets}")
    print(f"In deficit: {summary.targets_in_deficit}")
    print(f"Needing top up: {summary.targets_needing_top_up}")
    if summary.skipped_logs:
        print(f"Skipped claim logs: {summary.skipped_logs}")

    if report.has_deficits():
        print("\nStreams needing attention:")
        for row in report.iter_deficit_rows():
            print(f"- {row.vendor} ({row.address}): {row.days_deficit} days short, top up {row.required_top_up}")
    else:
        print("\nAll streams funded.")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(env_path=args.env_file)
        request = build_request(settings, args.block, args.simulate, args.time_advance, args.window)
        context = build_context(settings, simulate=request.simulate)
        report = asyncio.run(run_report(context, request))
    except StreamerDeficitError as exc:
        logger.error("Failed to generate streamer deficit report: %s", exc)
        return 1

    output = write_csv(report.rows, args.output or settings.output_path)
    print_summary(report)
    print(f"\nCreated report: {output}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
