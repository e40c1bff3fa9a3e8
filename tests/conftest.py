"""Shared fixtures: a DataMall client wired to a fake requests session."""

from __future__ import annotations

import json
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
import requests

from lta_datamall.mcp_servers.datamall.tools import ToolDispatcher
from lta_datamall.sources.datamall import DataMallClient
from lta_datamall.utils.provider_config_loader import ProviderConfig


BASE_URL = "https://datamall.example.test/ltaodataservice"
FAKE_KEY = "test-account-key"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_response(
    status: int = 200,
    body: Any = None,
    text: Optional[str] = None,
    url: str = f"{BASE_URL}/v3/BusArrival",
    reason: str = "OK",
) -> requests.Response:
    """A real requests.Response, so raise_for_status() and json() behave as in production."""
    r = requests.Response()
    r.status_code = status
    r.reason = reason
    r.url = url
    r.encoding = "utf-8"
    if text is None:
        text = json.dumps(body if body is not None else {})
        r.headers["Content-Type"] = "application/json"
    r._content = text.encode("utf-8")
    return r


@pytest.fixture
def session() -> MagicMock:
    s = MagicMock(spec=requests.Session)
    s.get.return_value = make_response(200, {"odata.metadata": "x", "value": []})
    return s


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        raw={
            "provider": {
                "datamall": {
                    "base_url": BASE_URL,
                    "timeout_s": None,
                    "verify_tls": True,
                    "auth": {"mode": "header", "env_var": "LTA_API_KEY", "header_name": "AccountKey"},
                }
            }
        },
    )


@pytest.fixture
def client(session) -> DataMallClient:
    return DataMallClient(base_url=BASE_URL, headers={"AccountKey": FAKE_KEY}, session=session)


@pytest.fixture
def dispatcher(client) -> ToolDispatcher:
    return ToolDispatcher(client)
