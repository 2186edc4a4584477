"""Error taxonomy — every failure is tagged with the origin it came from."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Where a failure originated."""

    CONFIG = "config error"
    CONTRACT = "contract error"
    IO = "I/O error"
    GAS_ORACLE = "gas error"
    RPC = "rpc error"
    STORE = "store error"
    MALFORMED = "malformed data"
    MISC = "misc error"


class RebalancerError(Exception):
    """Base class for all errors raised by the rebalancer."""

    kind: ErrorKind = ErrorKind.MISC

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class ConfigError(RebalancerError):
    kind = ErrorKind.CONFIG


class FetchError(RebalancerError):
    """A source could not be refreshed; the cycle must be skipped."""


class StoreError(FetchError):
    kind = ErrorKind.STORE


class MalformedError(FetchError):
    kind = ErrorKind.MALFORMED


class OracleError(FetchError):
    kind = ErrorKind.GAS_ORACLE


class RpcError(FetchError):
    kind = ErrorKind.RPC


class ExecutionError(RebalancerError):
    """The rebalance transaction failed to execute on-chain."""

    kind = ErrorKind.CONTRACT
