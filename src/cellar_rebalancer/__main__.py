"""Allow running as: python -m cellar_rebalancer <command>."""

from cellar_rebalancer.cli import main

main()
