"""Signed HTTP transport: the only place the SDK talks to the network."""

from __future__ import annotations

from types import TracebackType

import httpx
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from loguru import logger

from .errors import ChefConnectionError, SigningError, error_for_status
from .signing import SignedRequest, sign_request


class SignedTransport:
    """Send Chef API requests signed with one client identity.

    Relative paths are resolved against ``base_url``. Every non-2xx response
    raises a :class:`~chef_sdk.errors.ChefHTTPError`; nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        client_name: str,
        private_key: RSAPrivateKey,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not client_name:
            raise SigningError("A client name is required to sign Chef requests")
        if not isinstance(private_key, RSAPrivateKey):
            raise SigningError("A private RSA key is required to sign Chef requests")

        self._base_url = httpx.URL(str(base_url))
        self._client_name = client_name
        self._private_key = private_key
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.AsyncClient()

    @property
    def base_url(self) -> str:
        return str(self._base_url).rstrip("/")

    @property
    def client_name(self) -> str:
        return self._client_name

    @property
    def private_key(self) -> RSAPrivateKey:
        return self._private_key

    def resolve(self, relative_path: str) -> str:
        return str(self._base_url.join(relative_path))

    def _build(self, url: str, method: str | None, body: str | None) -> httpx.Request:
        signed: SignedRequest = sign_request(
            self._client_name,
            url,
            self._private_key,
            method=method or "GET",
            body=body if body is not None else "",
        )
        headers = dict(signed.headers)
        content: bytes | None = None
        if signed.method != "GET":
            content = signed.body.encode("utf-8")
            headers["Content-Type"] = "application/json"
        return self._client.build_request(signed.method, signed.url, headers=headers, content=content)

    async def _dispatch(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.TransportError as exc:
            logger.debug(f"{request.method} {request.url} failed: {exc!r}")
            raise ChefConnectionError(f"{request.method} {request.url} failed: {exc}") from exc

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        if response.is_success:
            return response

        if stream:
            await response.aread()
            await response.aclose()
        raise error_for_status(response.status_code, request.method, str(request.url), response.text)

    async def send(self, relative_path: str, method: str | None = None, body: str | None = None) -> str:
        """Sign and send a request for a path relative to the server's base URL."""
        return await self.send_raw(self.resolve(relative_path), method, body)

    async def send_raw(self, url: str, method: str | None = None, body: str | None = None) -> str:
        """Sign and send a request for an absolute URL returned by the server."""
        response = await self._dispatch(self._build(url, method, body))
        return response.text

    async def send_stream(
        self, url: str, method: str | None = None, body: str | None = None
    ) -> httpx.Response:
        """Return an open streaming response; the caller must ``aclose()`` it."""
        return await self._dispatch(self._build(url, method, body), stream=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SignedTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
