"""Pytest configuration and shared fixtures.

This file ensures that:
- `src/` is importable
- tests share one RSA test key and the golden signing fixture
- entity tests can build a `ChefServer` over an in-memory HTTP handler
"""

from __future__ import annotations

import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

# Ensure src directory is in path for imports
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from chef_sdk.auth import load_private_key  # noqa: E402
from chef_sdk.server import ChefServer  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures"
BASE_URL = "https://chef.example.com"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def private_key_pem() -> str:
    return (FIXTURES / "client.pem").read_text()


@pytest.fixture
def public_key_pem() -> str:
    return (FIXTURES / "client.pub").read_text()


@pytest.fixture
def private_key(private_key_pem: str) -> RSAPrivateKey:
    return load_private_key(private_key_pem)


@pytest.fixture
def golden_request() -> dict[str, Any]:
    """Headers for a GET of /organizations/acme/nodes signed at a fixed time."""
    return json.loads((FIXTURES / "signed_get_nodes.json").read_text())


@pytest.fixture
def make_server(private_key: RSAPrivateKey) -> Callable[[Handler], ChefServer]:
    """Build a `ChefServer` whose HTTP traffic is answered by ``handler``."""

    def factory(handler: Handler) -> ChefServer:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ChefServer(BASE_URL, "pivotal", private_key, http_client=http_client)

    return factory
