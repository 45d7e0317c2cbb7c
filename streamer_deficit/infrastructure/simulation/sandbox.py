"""Fork sandbox driven through the Hardhat/Anvil JSON-RPC extensions."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from web3 import AsyncWeb3
from web3.types import RPCEndpoint

from streamer_deficit.domain.errors import ChainReadError, ConfigurationError, SimulationError
from streamer_deficit.domain.repositories import Abi
from streamer_deficit.infrastructure.chain.gateway import TRANSPORT_ERRORS, connect

logger = logging.getLogger(__name__)


class Web3ForkSandbox:
    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

    @classmethod
    def from_url(cls, fork_url: str, upstream_url: str, timeout: int = 60) -> "Web3ForkSandbox":
        if fork_url.rstrip("/") == upstream_url.rstrip("/"):
            raise ConfigurationError("FORK_RPC_URL must point at a local fork, not the upstream endpoint")
        return cls(connect(fork_url, timeout))

    async def close(self) -> None:
        await self._w3.provider.disconnect()

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        try:
            response = await self._w3.provider.make_request(RPCEndpoint(method), params)
        except TRANSPORT_ERRORS as exc:
            raise SimulationError(f"{method} failed: {exc}") from exc
        if "error" in response:
            error = response["error"]
            message = error.get("message") if isinstance(error, Mapping) else error
            raise SimulationError(f"{method} failed: {message}")
        return response.get("result")

    async def reset(self, upstream_url: str, fork_block: int | None = None) -> None:
        forking: dict[str, Any] = {"jsonRpcUrl": upstream_url}
        if fork_block is not None:
            forking["blockNumber"] = fork_block
        await self._rpc("hardhat_reset", [{"forking": forking}])
        logger.debug("Fork reset at block %s", fork_block if fork_block is not None else "latest")

    async def increase_time(self, seconds: int) -> None:
        await self._rpc("evm_increaseTime", [seconds])

    async def mine(self) -> None:
        await self._rpc("evm_mine", [])

    async def impersonate(self, account: str) -> None:
        await self._rpc("hardhat_impersonateAccount", [account])

    async def stop_impersonating(self, account: str) -> None:
        await self._rpc("hardhat_stopImpersonatingAccount", [account])

    async def set_balance(self, account: str, wei: int) -> None:
        await self._rpc("hardhat_setBalance", [account, hex(wei)])

    def encode_call(self, abi: Abi, function: str, *args: Any) -> str:
        contract = self._w3.eth.contract(abi=list(abi))
        return contract.encode_abi(function, args=list(args))

    async def send_transaction(self, tx: Mapping[str, Any]) -> str:
        return str(await self._rpc("eth_sendTransaction", [dict(tx)]))

    async def get_receipt(self, tx_hash: str) -> Mapping[str, Any] | None:
        receipt = await self._rpc("eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            return None
        status = receipt.get("status")
        if isinstance(status, str):
            receipt = {**receipt, "status": int(status, 16)}
        return receipt

    async def call(self, address: str, abi: Abi, function: str, *args: Any) -> Any:
        try:
            contract = self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=list(abi))
            return await getattr(contract.functions, function)(*args).call(block_identifier="latest")
        except TRANSPORT_ERRORS as exc:
            raise ChainReadError(f"{function}() on fork for {address} failed: {exc}") from exc
