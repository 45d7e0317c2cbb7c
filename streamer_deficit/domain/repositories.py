"""Ports the domain and application layers use to reach the chain."""
from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

BlockIdentifier = int | str
Abi = Sequence[Mapping[str, Any]]


class ChainGateway(Protocol):
    """Read-only access to a JSON-RPC node."""

    async def block_number(self) -> int:
        ...

    async def block_timestamp(self, number: int) -> int | None:
        """Timestamp of ``number``, or ``None`` when the node cannot serve it."""
        ...

    async def call(
        self,
        address: str,
        abi: Abi,
        function: str,
        *args: Any,
        block: BlockIdentifier = "latest",
    ) -> Any:
        ...

    async def get_logs(self, address: str, topic: str, from_block: int, to_block: int) -> Sequence[Any]:
        ...

    def decode_event(self, address: str, abi: Abi, event: str, log: Any) -> Mapping[str, Any]:
        """Decode ``log`` as ``event``; raises ``LogParsingError`` on mismatch."""
        ...

    async def close(self) -> None:
        """Release the underlying HTTP session."""
        ...


class ForkSandbox(Protocol):
    """A disposable fork of the upstream chain that accepts state-changing RPCs."""

    async def reset(self, upstream_url: str, fork_block: int | None = None) -> None:
        ...

    async def increase_time(self, seconds: int) -> None:
        ...

    async def mine(self) -> None:
        ...

    async def impersonate(self, account: str) -> None:
        ...

    async def stop_impersonating(self, account: str) -> None:
        ...

    async def set_balance(self, account: str, wei: int) -> None:
        ...

    def encode_call(self, abi: Abi, function: str, *args: Any) -> str:
        ...

    async def send_transaction(self, tx: Mapping[str, Any]) -> str:
        ...

    async def get_receipt(self, tx_hash: str) -> Mapping[str, Any] | None:
        ...

    async def call(self, address: str, abi: Abi, function: str, *args: Any) -> Any:
        ...

    async def close(self) -> None:
        ...
