"""Tests for streamed cookbook file reads and downloads."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from chef_sdk.errors import ChefConnectionError, ChefError
from chef_sdk.files import RemoteFile
from chef_sdk.transport import SignedTransport

FILE_URL = "https://files.example.com/bookshelf/apache2/1.0.0/recipes/default.rb"


class ResetStream(httpx.AsyncByteStream):
    """Body that sends one chunk and then drops the connection."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield b"partial-"
        raise httpx.ReadError("connection reset")

    async def aclose(self) -> None:
        pass


def _remote_file(private_key: RSAPrivateKey, response: httpx.Response) -> RemoteFile:
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    transport = SignedTransport(
        "https://chef.example.com",
        "pivotal",
        private_key,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return RemoteFile(transport, FILE_URL, "recipes/default.rb", "default.rb", "default", "8a3f1c2d")


def test_read_wraps_connection_reset(private_key: RSAPrivateKey) -> None:
    """Given a body that breaks mid-stream, when `read()` runs, then the failure
    surfaces as a `ChefConnectionError` chained to the transport error."""

    async def scenario() -> None:
        remote = _remote_file(private_key, httpx.Response(200, stream=ResetStream()))

        with pytest.raises(ChefConnectionError) as excinfo:
            await remote.read()

        assert isinstance(excinfo.value, ChefError)
        assert isinstance(excinfo.value.__cause__, httpx.ReadError)

    asyncio.run(scenario())


def test_failed_download_leaves_no_file(private_key: RSAPrivateKey, tmp_path: Path) -> None:
    """Given a body that breaks mid-stream, when `download()` runs, then neither
    the target nor a partial file is left behind."""

    async def scenario() -> None:
        remote = _remote_file(private_key, httpx.Response(200, stream=ResetStream()))
        target = tmp_path / "default.rb"

        with pytest.raises(ChefConnectionError):
            await remote.download(target)

        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    asyncio.run(scenario())


def test_failed_download_keeps_existing_target(private_key: RSAPrivateKey, tmp_path: Path) -> None:
    async def scenario() -> None:
        remote = _remote_file(private_key, httpx.Response(200, stream=ResetStream()))
        target = tmp_path / "default.rb"
        target.write_bytes(b"previous copy\n")

        with pytest.raises(ChefConnectionError):
            await remote.download(target)

        assert target.read_bytes() == b"previous copy\n"

    asyncio.run(scenario())


def test_download_replaces_target(private_key: RSAPrivateKey, tmp_path: Path) -> None:
    async def scenario() -> None:
        remote = _remote_file(private_key, httpx.Response(200, content=b"package 'apache2'\n"))
        target = tmp_path / "default.rb"
        target.write_bytes(b"old\n")

        result = await remote.download(target)

        assert result == target
        assert target.read_bytes() == b"package 'apache2'\n"
        assert sorted(path.name for path in tmp_path.iterdir()) == ["default.rb"]

    asyncio.run(scenario())
