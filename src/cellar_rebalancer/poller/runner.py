"""Poller runner — wires the real collaborators and runs the loop until signalled."""

from __future__ import annotations

import asyncio
import os
import signal

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3

from cellar_rebalancer.chain.contracts import Web3CellarContract
from cellar_rebalancer.config.loader import load_config
from cellar_rebalancer.config.schema import AppConfig
from cellar_rebalancer.db.engine import get_sessionmaker, init_engine
from cellar_rebalancer.errors import ConfigError
from cellar_rebalancer.gas.oracle import EtherscanGasOracle
from cellar_rebalancer.logging.setup import setup_logging
from cellar_rebalancer.poller.poller import Poller
from cellar_rebalancer.prediction.store import SqlPredictionStore

log = structlog.get_logger("runner")


def load_account(config: AppConfig) -> LocalAccount | None:
    """Signing account from the env var named in config; optional in dry-run."""
    key = os.environ.get(config.ethereum.private_key_env)
    if not key:
        if config.cellar.dry_run:
            log.info("no_signing_key", reason="dry_run")
            return None
        raise ConfigError(
            f"{config.ethereum.private_key_env} is not set and dry_run is off"
        )
    try:
        return Account.from_key(key)
    except ValueError as exc:
        raise ConfigError(f"{config.ethereum.private_key_env} is not a valid private key") from exc


def connect_web3(config: AppConfig) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.ethereum.rpc_url))


def build_store(config: AppConfig) -> SqlPredictionStore:
    init_engine(config.database.url)
    return SqlPredictionStore(get_sessionmaker())


def build_oracle(config: AppConfig) -> EtherscanGasOracle:
    return EtherscanGasOracle(
        api_key=config.gas_oracle.api_key,
        base_url=config.gas_oracle.base_url,
        chain_id=config.gas_oracle.chain_id,
        timeout_s=config.gas_oracle.timeout_s,
    )


def build_contract(config: AppConfig, w3: AsyncWeb3) -> Web3CellarContract:
    return Web3CellarContract(
        w3,
        cellar_address=config.cellar.cellar_address,
        pool_address=config.cellar.pool_address,
        account=load_account(config),
        chain_id=config.ethereum.chain_id,
        receipt_timeout_s=config.ethereum.receipt_timeout_s,
    )


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            log.warning("signal_handler_unavailable", signal=sig.name)


async def run_poller(config: AppConfig, stop: asyncio.Event | None = None) -> None:
    """Build the poller for the configured cellar and run it until *stop* is set."""
    if stop is None:
        stop = asyncio.Event()
        _install_signal_handlers(stop)

    w3 = connect_web3(config)
    oracle = build_oracle(config)
    try:
        poller = await Poller.create(
            config.cellar,
            store=build_store(config),
            oracle=oracle,
            contract=build_contract(config, w3),
        )
        await poller.run(stop)
    finally:
        await oracle.close()
        await w3.provider.disconnect()


def main(config_path: str | None = None) -> None:
    """Entry point — load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    asyncio.run(run_poller(config))
