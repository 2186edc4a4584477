"""Gas oracle clients — current "standard" gas price in wei."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from web3 import Web3

from cellar_rebalancer.errors import OracleError


class GasOracle(ABC):
    """Source of the current standard gas price."""

    @abstractmethod
    async def standard_price(self) -> int:
        """Return the standard gas price in wei, raising OracleError on failure."""
        ...


class EtherscanGasOracle(GasOracle):
    """Async client for the Etherscan gas tracker.

    The gas tracker answers with gwei strings (possibly fractional):
    {"status": "1", "message": "OK",
     "result": {"SafeGasPrice": "..", "ProposeGasPrice": "..", "FastGasPrice": ".."}}
    ProposeGasPrice is the "standard" tier.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.etherscan.io/v2/api",
        chain_id: int = 1,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain_id = chain_id
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def standard_price(self) -> int:
        params: dict[str, Any] = {
            "chainid": self.chain_id,
            "module": "gastracker",
            "action": "gasoracle",
        }
        if self._api_key:
            params["apikey"] = self._api_key

        try:
            http = await self._get_http()
            resp = await http.get(self.base_url, params=params)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise OracleError(f"gas oracle request failed: {exc}") from exc

        return self.parse_standard_price(body)

    @staticmethod
    def parse_standard_price(body: Any) -> int:
        """Extract ProposeGasPrice (gwei) from a gas tracker response as wei."""
        if not isinstance(body, dict) or str(body.get("status")) != "1":
            message = body.get("result") if isinstance(body, dict) else body
            raise OracleError(f"gas oracle returned an error: {message!r}")
        result = body.get("result")
        if not isinstance(result, dict) or "ProposeGasPrice" not in result:
            raise OracleError(f"gas oracle response has no ProposeGasPrice: {result!r}")
        try:
            gwei = Decimal(str(result["ProposeGasPrice"]))
        except InvalidOperation as exc:
            raise OracleError(
                f"unparseable ProposeGasPrice {result['ProposeGasPrice']!r}"
            ) from exc
        if not gwei.is_finite() or gwei < 0:
            raise OracleError(f"invalid ProposeGasPrice {gwei}")
        return int(Web3.to_wei(gwei, "gwei"))
