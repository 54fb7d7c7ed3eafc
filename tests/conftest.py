"""
Pytest Configuration
Shared fixtures: a fixed signer key, a stub asset table, env isolation and
an in-memory exchange transport.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

from hl_l1.hl_meta import AssetInfo, AssetTable

FIXTURES = Path(__file__).parent / "fixtures"

# Well-known development key (Hardhat/Anvil account #0); never funded on the exchange.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_VAULT = "0x1719884eb866cb12b2287399b15f7db5e7d775ea"
TEST_NONCE = 1700000000000


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY


@pytest.fixture
def signer_address() -> str:
    return TEST_ADDRESS


@pytest.fixture
def asset_table() -> AssetTable:
    return AssetTable({
        "BTC": AssetInfo(name="BTC", asset=0, sz_decimals=5),
        "ETH": AssetInfo(name="ETH", asset=1, sz_decimals=4),
        "PURR/USDC": AssetInfo(name="PURR/USDC", asset=10000, sz_decimals=0),
    })


@pytest.fixture
def fixture_text() -> Callable[[str], str]:
    def load(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8").strip()
    return load


class FakeExchangeServer:
    """Answers /info and /exchange from canned JSON and records every request."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.info_responses: Dict[str, Any] = {}
        self.exchange_response: Any = {
            "status": "ok",
            "response": {"type": "order", "data": {"statuses": [{"resting": {"oid": 77738308}}]}},
        }
        self.exchange_status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        self.requests.append({"path": request.url.path, "body": body})
        if request.url.path == "/info":
            return httpx.Response(200, json=self.info_responses[body["type"]])
        if request.url.path == "/exchange":
            return httpx.Response(self.exchange_status_code, json=self.exchange_response)
        return httpx.Response(404, json={"error": "not found"})

    @property
    def exchange_requests(self) -> List[Dict[str, Any]]:
        return [r["body"] for r in self.requests if r["path"] == "/exchange"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_server() -> FakeExchangeServer:
    return FakeExchangeServer()


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Keep HL_* settings from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("HL_"):
            monkeypatch.delenv(key, raising=False)
    yield


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "deterministic: marks tests as deterministic")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
