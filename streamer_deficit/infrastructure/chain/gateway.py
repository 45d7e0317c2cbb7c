"""web3-backed implementation of the chain gateway port."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence

from aiohttp import ClientError, ClientTimeout
from eth_abi.exceptions import DecodingError
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BlockNotFound, Web3Exception

from streamer_deficit.domain.errors import ChainReadError, LogParsingError
from streamer_deficit.domain.repositories import Abi, BlockIdentifier

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (Web3Exception, ClientError, asyncio.TimeoutError, ValueError)


def connect(rpc_url: str, timeout: int = 60) -> AsyncWeb3:
    provider = AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": ClientTimeout(total=timeout)})
    return AsyncWeb3(provider)


class Web3ChainGateway:
    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

    @classmethod
    def from_url(cls, rpc_url: str, timeout: int = 60) -> "Web3ChainGateway":
        return cls(connect(rpc_url, timeout))

    def _contract(self, address: str, abi: Abi) -> Any:
        return self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=list(abi))

    async def close(self) -> None:
        await self._w3.provider.disconnect()

    async def block_number(self) -> int:
        try:
            return int(await self._w3.eth.block_number)
        except TRANSPORT_ERRORS as exc:
            raise ChainReadError(f"eth_blockNumber failed: {exc}") from exc

    async def block_timestamp(self, number: int) -> int | None:
        try:
            block = await self._w3.eth.get_block(number)
        except BlockNotFound:
            logger.debug("Block %s not available", number)
            return None
        except TRANSPORT_ERRORS as exc:
            raise ChainReadError(f"eth_getBlockByNumber({number}) failed: {exc}") from exc
        return int(block["timestamp"])

    async def call(
        self,
        address: str,
        abi: Abi,
        function: str,
        *args: Any,
        block: BlockIdentifier = "latest",
    ) -> Any:
        try:
            contract = self._contract(address, abi)
            return await getattr(contract.functions, function)(*args).call(block_identifier=block)
        except TRANSPORT_ERRORS as exc:
            raise ChainReadError(f"{function}() on {address} at block {block} failed: {exc}") from exc

    async def get_logs(self, address: str, topic: str, from_block: int, to_block: int) -> Sequence[Any]:
        try:
            params = {
                "address": AsyncWeb3.to_checksum_address(address),
                "topics": [topic],
                "fromBlock": from_block,
                "toBlock": to_block,
            }
            return await self._w3.eth.get_logs(params)
        except TRANSPORT_ERRORS as exc:
            raise ChainReadError(f"eth_getLogs {from_block}-{to_block} for {address} failed: {exc}") from exc

    def decode_event(self, address: str, abi: Abi, event: str, log: Any) -> Mapping[str, Any]:
        try:
            contract = self._contract(address, abi)
            decoded = getattr(contract.events, event)().process_log(log)
        except (Web3Exception, DecodingError, ValueError, KeyError) as exc:
            raise LogParsingError(f"cannot decode {event} log: {exc}") from exc
        return decoded["args"]
