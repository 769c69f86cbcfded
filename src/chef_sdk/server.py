"""Entry point for Chef server connections."""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import IO

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from loguru import logger

from .auth import Credentials, load_private_key
from .cache import ResourceCache
from .errors import ChefNotFoundError, SigningError
from .models.records import OrganizationIndex, OrganizationRecord
from .organization import Organization
from .transform import parse_record
from .transport import SignedTransport


class ChefServer:
    """A connection to a Chef server under one client identity.

    This is the starting point for all server actions. The identity (client
    name and private key) is fixed for the lifetime of the connection.
    """

    def __init__(
        self,
        base_url: str,
        client_name: str,
        private_key: RSAPrivateKey,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.transport = SignedTransport(base_url, client_name, private_key, http_client=http_client)
        self.organizations_cache: ResourceCache[Organization] = ResourceCache(
            self._load_organizations, name=f"organizations of {client_name}"
        )

    # -- construction ------------------------------------------------------

    @classmethod
    def from_private_key(
        cls,
        base_url: str,
        private_key: RSAPrivateKey,
        name: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> ChefServer:
        if not isinstance(private_key, RSAPrivateKey):
            raise SigningError("A private RSA key is required to connect to a Chef server")
        return cls(base_url, name, private_key, http_client=http_client)

    @classmethod
    def from_string(
        cls, base_url: str, private_key: str, name: str, *, http_client: httpx.AsyncClient | None = None
    ) -> ChefServer:
        """Connect using a PEM-encoded private key held in memory."""
        return cls(base_url, name, load_private_key(private_key), http_client=http_client)

    @classmethod
    def from_path(
        cls,
        base_url: str,
        private_key_path: Path | str,
        name: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> ChefServer:
        path = Path(private_key_path).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Private key file not found: {path}")
        return cls(base_url, name, load_private_key(path), http_client=http_client)

    @classmethod
    def from_stream(
        cls,
        base_url: str,
        private_key: IO[str] | IO[bytes],
        name: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> ChefServer:
        """Connect using a PEM key read from an open stream; the stream is left open."""
        return cls(base_url, name, load_private_key(private_key), http_client=http_client)

    @classmethod
    def from_credentials(
        cls, credentials: Credentials, *, http_client: httpx.AsyncClient | None = None
    ) -> ChefServer:
        return cls(
            str(credentials.server_url),
            credentials.client_name,
            credentials.load_private_key(),
            http_client=http_client,
        )

    @classmethod
    def from_file(
        cls, path: Path | str | None = None, *, http_client: httpx.AsyncClient | None = None
    ) -> ChefServer:
        """Connect using settings from a YAML config file (see ``Credentials.from_file``)."""
        return cls.from_credentials(Credentials.from_file(path), http_client=http_client)

    # -- identity ----------------------------------------------------------

    @property
    def client_name(self) -> str:
        return self.transport.client_name

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    def _public_key_bytes(self) -> bytes:
        return self.transport.private_key.public_key().public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def __str__(self) -> str:
        return f"Chef:{self.base_url}"

    def __repr__(self) -> str:
        return f"ChefServer({self.base_url!r}, client_name={self.client_name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChefServer):
            return NotImplemented
        return (
            self.base_url == other.base_url
            and self.client_name == other.client_name
            and self._public_key_bytes() == other._public_key_bytes()
        )

    def __hash__(self) -> int:
        return hash((self.base_url, self.client_name))

    # -- resources ---------------------------------------------------------

    async def organizations(self) -> tuple[Organization, ...]:
        """Return the organizations the client belongs to (cached)."""
        return await self.organizations_cache.get()

    async def find_organization(self, name: str) -> Organization | None:
        """Fetch one organization directly; ``None`` if the server has no such organization."""
        try:
            payload = await self.transport.send(f"/organizations/{name}")
        except ChefNotFoundError:
            logger.warning(f"Organization {name} not found on {self.base_url}")
            return None
        return Organization.from_record(self, parse_record(OrganizationRecord, payload, "organization"))

    def clear_cache(self) -> None:
        self.organizations_cache.invalidate()

    async def _load_organizations(self) -> list[Organization]:
        payload = await self.transport.send(f"/users/{self.client_name}/organizations")
        index = parse_record(OrganizationIndex, payload, "organization index")

        organizations: list[Organization] = []
        for membership in index.root:
            detail = await self.transport.send(f"/organizations/{membership.organization.name}")
            record = parse_record(OrganizationRecord, detail, "organization")
            organizations.append(Organization.from_record(self, record))

        logger.info(f"Loaded {len(organizations)} organizations for {self.client_name}")
        return organizations

    # -- lifecycle ---------------------------------------------------------

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> ChefServer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
