"""Central configuration for the streamer deficit report."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values

from streamer_deficit.domain.errors import ConfigurationError
from streamer_deficit.domain.models import StreamTarget, StreamVersion

BASE_DIR = Path(__file__).resolve().parent.parent

COMP_TOKEN_ADDRESS = "0xc00e94Cb662C3520282E6f5717214004A7f26888"
USDC_TOKEN_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
# Chainlink USDC/USD feed and the fixed 1 USD oracle used by v2 streams.
USDC_ORACLE_ADDRESS = "0x8fffffd4afb6115b954bd326cbe7b4ba576818f6"
USD_CONSTANT_ORACLE_ADDRESS = "0xd72ac1bce9177cfe7aeb5d0516a38c88a64ce0ab"

STREAM_TARGETS: tuple[StreamTarget, ...] = (
    StreamTarget("0xF088339DD8e79819A41aDD5FFB75d9F245AfaAb1", "Woof Software", StreamVersion.V1),
    StreamTarget("0x334791289a906Ac8f96ac0f90E7A91Bf4AaE4A60", "SSP", StreamVersion.V2),
    StreamTarget("0xAF9CEE006AE377e88f3BBd668e3d67807F546Bd8", "ZeroShadow", StreamVersion.V2),
    StreamTarget("0x36a0eB84154797DAdCEaCFD046785dB31094C308", "Tally", StreamVersion.V2),
    StreamTarget("0xEA2B6BC719CF6D2Fed07865d26987D32d570DbBD", "Gauntlet", StreamVersion.V2),
)

DEFAULT_LOG_WINDOW = 9_000
DEFAULT_FORK_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_TIME_ADVANCE_SECONDS = 86_400


@dataclass(slots=True, frozen=True)
class Settings:
    rpc_url: str
    fork_rpc_url: str
    v1_abi_path: Path
    v2_abi_path: Path
    output_path: Path
    log_window: int = DEFAULT_LOG_WINDOW
    time_advance_seconds: int = DEFAULT_TIME_ADVANCE_SECONDS
    request_timeout: int = 60
    receipt_attempts: int = 20
    receipt_interval: float = 0.5


def _int_setting(values: Mapping[str, str | None], name: str, default: int) -> int:
    raw = values.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env_path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``.env`` overlaid by the process environment."""
    env_file = env_path or BASE_DIR / ".env"
    values: dict[str, str | None] = dict(dotenv_values(env_file)) if env_file.exists() else {}
    values.update(os.environ if environ is None else environ)

    rpc_url = (values.get("RPC_MAINNET") or "").strip()
    if not rpc_url:
        raise ConfigurationError("Missing required environment variable: RPC_MAINNET")

    return Settings(
        rpc_url=rpc_url,
        fork_rpc_url=(values.get("FORK_RPC_URL") or DEFAULT_FORK_RPC_URL).strip(),
        v1_abi_path=Path(values.get("STREAMER_V1_ABI") or BASE_DIR / "streamer.v1.json"),
        v2_abi_path=Path(values.get("STREAMER_V2_ABI") or BASE_DIR / "streamer.v2.json"),
        output_path=Path(values.get("REPORT_OUTPUT") or BASE_DIR / "streamer-deficit-report.csv"),
        log_window=_int_setting(values, "LOG_WINDOW", DEFAULT_LOG_WINDOW),
        time_advance_seconds=_int_setting(values, "TIME_ADVANCE_SECONDS", DEFAULT_TIME_ADVANCE_SECONDS),
        request_timeout=_int_setting(values, "RPC_TIMEOUT", 60),
    )
