"""web3.py adapters for the cellar and its Uniswap V3 pool."""

from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception

from cellar_rebalancer.errors import ExecutionError, RpcError
from cellar_rebalancer.models import ContractStateUpdate, Instruction

ABI_DIR = os.path.join(os.path.dirname(__file__), "abi")

_TRANSPORT_ERRORS = (Web3Exception, OSError, asyncio.TimeoutError)


def _load_abi(filename: str) -> list:
    with open(os.path.join(ABI_DIR, filename)) as f:
        return json.load(f)


class PositionContract(ABC):
    """Capabilities the poller needs from the managed position."""

    @abstractmethod
    async def tick_spacing(self) -> int:
        ...

    @abstractmethod
    async def read_state(self) -> ContractStateUpdate:
        ...

    @abstractmethod
    async def rebalance(self, instructions: Sequence[Instruction], gas_price: int | None) -> str:
        """Submit one rebalance transaction and wait for it; return the tx hash."""
        ...


class PoolReader:
    """Read-only view of a Uniswap V3 pool."""

    def __init__(self, w3: AsyncWeb3, address: str):
        self.w3 = w3
        self.address = to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=_load_abi("pool.json"))

    async def tick_spacing(self) -> int:
        try:
            return int(await self.contract.functions.tickSpacing().call())
        except _TRANSPORT_ERRORS as exc:
            raise RpcError(f"tickSpacing() on pool {self.address} failed: {exc}") from exc

    async def tokens(self) -> tuple[str, str]:
        try:
            token_0 = await self.contract.functions.token0().call()
            token_1 = await self.contract.functions.token1().call()
        except _TRANSPORT_ERRORS as exc:
            raise RpcError(f"token query on pool {self.address} failed: {exc}") from exc
        return to_checksum_address(token_0), to_checksum_address(token_1)

    async def current_tick(self) -> int:
        try:
            slot0 = await self.contract.functions.slot0().call()
        except _TRANSPORT_ERRORS as exc:
            raise RpcError(f"slot0() on pool {self.address} failed: {exc}") from exc
        return int(slot0[1])


class Web3CellarContract(PositionContract):
    """Signs and sends cellar rebalances through an async web3 provider."""

    def __init__(
        self,
        w3: AsyncWeb3,
        cellar_address: str,
        pool_address: str,
        account: LocalAccount | None = None,
        chain_id: int = 1,
        receipt_timeout_s: float = 300.0,
    ):
        self.w3 = w3
        self.address = to_checksum_address(cellar_address)
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout_s = receipt_timeout_s
        self.cellar = w3.eth.contract(address=self.address, abi=_load_abi("cellar.json"))
        self.pool = PoolReader(w3, pool_address)

    async def tick_spacing(self) -> int:
        return await self.pool.tick_spacing()

    async def read_state(self) -> ContractStateUpdate:
        try:
            block_number = await self.w3.eth.block_number
        except _TRANSPORT_ERRORS as exc:
            raise RpcError(f"eth_blockNumber failed: {exc}") from exc
        return ContractStateUpdate(
            block_number=int(block_number),
            current_tick=await self.pool.current_tick(),
        )

    async def rebalance(self, instructions: Sequence[Instruction], gas_price: int | None) -> str:
        if self.account is None:
            raise ExecutionError("no signing account configured for rebalance")

        sender = self.account.address
        args = [instruction.as_abi_tuple() for instruction in instructions]
        try:
            tx_params = {
                "from": sender,
                "nonce": await self.w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.chain_id,
            }
            if gas_price is not None:
                tx_params["gasPrice"] = gas_price
            tx = await self.cellar.functions.rebalance(args).build_transaction(tx_params)
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout_s,
            )
        except _TRANSPORT_ERRORS as exc:
            raise ExecutionError(f"rebalance on cellar {self.address} failed: {exc}") from exc

        if receipt["status"] != 1:
            raise ExecutionError(f"rebalance tx {Web3.to_hex(tx_hash)} reverted")
        return Web3.to_hex(tx_hash)
