"""Loading of the streamer contract ABIs and the shared ERC-20 fragment."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from streamer_deficit.domain.errors import ConfigurationError
from streamer_deficit.domain.models import StreamVersion
from streamer_deficit.domain.repositories import Abi

ERC20_ABI: Abi = (
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
)


@dataclass(frozen=True)
class StreamerAbis:
    v1: Abi
    v2: Abi

    def for_version(self, version: StreamVersion) -> Abi:
        return self.v1 if version is StreamVersion.V1 else self.v2


def find_event_abi(abi: Abi, name: str) -> Mapping[str, Any] | None:
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == name:
            return entry
    return None


def load_abi(path: Path) -> Sequence[Mapping[str, Any]]:
    """Read an ABI from a bare JSON array or a Hardhat artifact with an ``abi`` key."""
    if not path.exists():
        raise ConfigurationError(f"ABI file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"ABI file {path} is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ConfigurationError(f"ABI file {path} does not contain an ABI array")
    return tuple(data)


def load_streamer_abis(v1_path: Path, v2_path: Path) -> StreamerAbis:
    return StreamerAbis(v1=load_abi(v1_path), v2=load_abi(v2_path))
