"""Pydantic domain models."""

from cellar_rebalancer.models.cellar import ContractStateUpdate, Instruction
from cellar_rebalancer.models.prediction import PredictionRecord, RawRange, WeightedRange
from cellar_rebalancer.models.token import TokenInfo, parse_uint256

__all__ = [
    "ContractStateUpdate",
    "Instruction",
    "PredictionRecord",
    "RawRange",
    "TokenInfo",
    "WeightedRange",
    "parse_uint256",
]
