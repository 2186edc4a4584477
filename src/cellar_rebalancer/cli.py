"""Command line interface.

    cellar-rebalancer start [--config config.yaml]
    cellar-rebalancer query pair --pool 0x... [--rpc-url URL]
    cellar-rebalancer query prediction [--config config.yaml]
    cellar-rebalancer query gas [--config config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from web3 import AsyncWeb3

from cellar_rebalancer.chain.contracts import PoolReader
from cellar_rebalancer.config.loader import load_config
from cellar_rebalancer.config.schema import EthereumConfig
from cellar_rebalancer.errors import RebalancerError
from cellar_rebalancer.logging.setup import setup_logging
from cellar_rebalancer.poller import runner
from cellar_rebalancer.prediction.ticks import tick_to_price
from cellar_rebalancer.prediction.window import PredictionWindow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cellar-rebalancer", description="Cellar rebalancer")
    sub = parser.add_subparsers(dest="command", required=True)

    start = sub.add_parser("start", help="Run the poller until interrupted")
    start.add_argument("--config", default="config.yaml", help="Path to config file")

    query = sub.add_parser("query", help="One-off read-only queries")
    query_sub = query.add_subparsers(dest="target", required=True)

    pair = query_sub.add_parser("pair", help="Print the token pair and spacing of a pool")
    pair.add_argument("--pool", required=True, help="Pool contract address")
    pair.add_argument("--rpc-url", default=EthereumConfig().rpc_url, help="Ethereum JSON-RPC URL")

    prediction = query_sub.add_parser("prediction", help="Print the latest normalized prediction")
    prediction.add_argument("--config", default="config.yaml", help="Path to config file")

    gas = query_sub.add_parser("gas", help="Print the current standard gas price")
    gas.add_argument("--config", default="config.yaml", help="Path to config file")

    return parser


async def query_pair(pool_address: str, rpc_url: str) -> None:
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
    try:
        pool = PoolReader(w3, pool_address)
        token_0, token_1 = await pool.tokens()
        spacing = await pool.tick_spacing()
    finally:
        await w3.provider.disconnect()
    print(f"token_0: {token_0}")
    print(f"token_1: {token_1}")
    print(f"tick_spacing: {spacing}")


async def query_prediction(config_path: str) -> None:
    config = load_config(config_path)
    w3 = runner.connect_web3(config)
    try:
        spacing = await PoolReader(w3, config.cellar.pool_address).tick_spacing()
    finally:
        await w3.provider.disconnect()

    window = PredictionWindow.from_config(config.cellar, spacing)
    window = await window.refresh(runner.build_store(config))
    if window.current_time is None:
        print("no prediction stored for this pair")
        return
    print(f"created: {window.current_time.isoformat()}")
    for r in window.ranges:
        print(
            f"[{r.lower_tick}, {r.upper_tick}] weight={r.weight} "
            f"raw_price=[{tick_to_price(r.lower_tick):.6g}, {tick_to_price(r.upper_tick):.6g}]"
        )


async def query_gas(config_path: str) -> None:
    config = load_config(config_path)
    oracle = runner.build_oracle(config)
    try:
        price = await oracle.standard_price()
    finally:
        await oracle.close()
    print(f"standard: {price} wei ({AsyncWeb3.from_wei(price, 'gwei')} gwei)")
    print(f"max: {config.cellar.max_gas_price_wei} wei")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "start":
            runner.main(config_path=args.config)
            return

        setup_logging(level="WARNING", log_format="console")
        if args.target == "pair":
            asyncio.run(query_pair(args.pool, args.rpc_url))
        elif args.target == "prediction":
            asyncio.run(query_prediction(args.config))
        elif args.target == "gas":
            asyncio.run(query_gas(args.config))
    except RebalancerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
