"""Tests for the Etherscan gas oracle and GasState."""

from __future__ import annotations

import httpx
import pytest

from cellar_rebalancer.errors import OracleError
from cellar_rebalancer.gas import EtherscanGasOracle, GasState

from conftest import FakeOracle

GWEI = 10**9


def _oracle_with(handler) -> EtherscanGasOracle:
    return EtherscanGasOracle(api_key="KEY", transport=httpx.MockTransport(handler))


def _ok(result: dict) -> dict:
    return {"status": "1", "message": "OK", "result": result}


async def _fetch(oracle: EtherscanGasOracle) -> int:
    try:
        return await oracle.standard_price()
    finally:
        await oracle.close()


class TestEtherscanGasOracle:
    def test_default_url(self):
        assert EtherscanGasOracle().base_url == "https://api.etherscan.io/v2/api"

    def test_strips_trailing_slash(self):
        assert EtherscanGasOracle(base_url="https://example.test/api/").base_url == "https://example.test/api"

    async def test_returns_propose_price_in_wei(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=_ok({
                "SafeGasPrice": "10", "ProposeGasPrice": "12", "FastGasPrice": "15",
            }))

        price = await _fetch(_oracle_with(handler))
        assert price == 12 * GWEI
        assert seen["module"] == "gastracker"
        assert seen["action"] == "gasoracle"
        assert seen["apikey"] == "KEY"
        assert seen["chainid"] == "1"

    async def test_fractional_gwei(self):
        def handler(request):
            return httpx.Response(200, json=_ok({"ProposeGasPrice": "0.5"}))

        assert await _fetch(_oracle_with(handler)) == GWEI // 2

    async def test_http_error_raises_oracle_error(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with pytest.raises(OracleError):
            await _fetch(_oracle_with(handler))

    async def test_api_error_status_raises(self):
        def handler(request):
            return httpx.Response(200, json={"status": "0", "message": "NOTOK", "result": "Invalid API Key"})

        with pytest.raises(OracleError, match="Invalid API Key"):
            await _fetch(_oracle_with(handler))

    async def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>rate limited</html>")

        with pytest.raises(OracleError):
            await _fetch(_oracle_with(handler))

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(OracleError):
            await _fetch(_oracle_with(handler))


class TestParseStandardPrice:
    def test_missing_field(self):
        with pytest.raises(OracleError):
            EtherscanGasOracle.parse_standard_price(_ok({"SafeGasPrice": "1"}))

    def test_garbage_value(self):
        with pytest.raises(OracleError):
            EtherscanGasOracle.parse_standard_price(_ok({"ProposeGasPrice": "fast"}))

    def test_negative_value(self):
        with pytest.raises(OracleError):
            EtherscanGasOracle.parse_standard_price(_ok({"ProposeGasPrice": "-1"}))


class TestGasState:
    def test_current_price_starts_absent(self):
        gas = GasState(max_price=50 * GWEI)
        assert gas.current_price is None
        assert gas.exceeds_max() is False

    async def test_refresh_does_not_mutate(self):
        gas = GasState(max_price=50 * GWEI)
        price = await gas.refresh(FakeOracle(30 * GWEI))
        assert price == 30 * GWEI
        assert gas.current_price is None

    def test_apply_sets_unconditionally(self):
        gas = GasState(max_price=50 * GWEI, current_price=10 * GWEI)
        gas.apply(70 * GWEI)
        assert gas.current_price == 70 * GWEI
        gas.apply(0)
        assert gas.current_price == 0

    def test_exceeds_max(self):
        gas = GasState(max_price=50 * GWEI)
        gas.apply(50 * GWEI)
        assert gas.exceeds_max() is False
        gas.apply(51 * GWEI)
        assert gas.exceeds_max() is True

    async def test_refresh_propagates_oracle_error(self):
        oracle = FakeOracle()
        oracle.error = OracleError("down")
        with pytest.raises(OracleError):
            await GasState(max_price=1).refresh(oracle)
