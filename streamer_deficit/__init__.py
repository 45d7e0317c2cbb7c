"""Funding-deficit reporting for COMP streamer contracts."""
from streamer_deficit.application.dto import ReportRequest
from streamer_deficit.application.use_cases import DeficitReportContext, GenerateDeficitReportUseCase, run_report
from streamer_deficit.domain.services import compute_deficit
from streamer_deficit.infrastructure.chain.gateway import Web3ChainGateway

__all__ = [
    "ReportRequest",
    "DeficitReportContext",
    "GenerateDeficitReportUseCase",
    "run_report",
    "compute_deficit",
    "Web3ChainGateway",
]
