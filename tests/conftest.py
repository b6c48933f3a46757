"""Shared pytest fixtures."""

import json
import os
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from eth_account import Account

from dexrelay.api import Api
from dexrelay.signers.base import OrderSigner
from dexrelay.signers.local import LimitOrderSigner, StopLimitOrderSigner

TEST_PRIVATE_KEY = "0x" + "11" * 32
TEST_CHAIN_ID = 1
LIMIT_ORDERS_ADDRESS = "0xDEf136D9884528e1EB302f39457af0E4d3AD24EB"
STOP_LIMIT_ORDERS_ADDRESS = "0xbFb635e8c6689ac3874aD9A60FaB1c29270f7a62"
OWNER = Account.from_key(TEST_PRIVATE_KEY).address
ENDPOINT = "https://relay.test"


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """Reset settings singleton before each test."""
    import dexrelay.config

    dexrelay.config._settings_instance = None
    yield
    dexrelay.config._settings_instance = None


@pytest.fixture(autouse=True)
def clear_dexrelay_env():
    """Keep DEXRELAY_* variables from the host out of tests."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("DEXRELAY_")}
    for key in saved:
        del os.environ[key]
    yield
    for key in [k for k in os.environ if k.startswith("DEXRELAY_")]:
        del os.environ[key]
    os.environ.update(saved)


@pytest.fixture
def owner() -> str:
    return OWNER


@pytest.fixture
def limit_signer() -> LimitOrderSigner:
    return LimitOrderSigner(TEST_PRIVATE_KEY, TEST_CHAIN_ID, LIMIT_ORDERS_ADDRESS)


@pytest.fixture
def stop_limit_signer() -> StopLimitOrderSigner:
    return StopLimitOrderSigner(TEST_PRIVATE_KEY, TEST_CHAIN_ID, STOP_LIMIT_ORDERS_ADDRESS)


@pytest.fixture
def mock_limit_signer():
    """Limit-order signer double returning fixed signatures."""
    signer = MagicMock(spec=OrderSigner)
    signer.sign_order = AsyncMock(return_value="0x" + "ab" * 65 + "00")
    signer.sign_cancel_order_by_hash = AsyncMock(return_value="0x" + "cd" * 65 + "00")
    return signer


@pytest.fixture
def mock_stop_limit_signer():
    """Stop-limit signer double returning a fixed signature."""
    signer = MagicMock(spec=OrderSigner)
    signer.sign_order = AsyncMock(return_value="0x" + "ef" * 65 + "00")
    signer.sign_cancel_order_by_hash = AsyncMock(return_value="0x" + "cd" * 65 + "00")
    return signer


class RecordingRelay:
    """httpx MockTransport handler that records requests.

    Responds with ``response_json`` (200) unless ``handler`` is replaced.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.response_json: dict = {"order": {"id": "0xorder"}}
        self.handler: Callable[[httpx.Request], httpx.Response] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        return httpx.Response(200, json=self.response_json)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)

    def last_query(self) -> str:
        return self.last.url.query.decode()


@pytest.fixture
def relay() -> RecordingRelay:
    return RecordingRelay()


@pytest.fixture
def api(relay, mock_limit_signer, mock_stop_limit_signer) -> Api:
    """Api wired to mock signers and a recording transport."""
    return Api(
        mock_limit_signer,
        mock_stop_limit_signer,
        endpoint=ENDPOINT,
        timeout=5000,
        transport=httpx.MockTransport(relay),
    )
