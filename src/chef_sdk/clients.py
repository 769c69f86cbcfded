"""API clients registered in a Chef organization."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from loguru import logger

from .auth import load_private_key, load_public_key
from .errors import ChefParseError, SigningError
from .models.records import ClientRecord, KeyPairRecord
from .transform import parse_record

if TYPE_CHECKING:
    from .organization import Organization


class Client:
    """A client identity (user or node key) within an organization."""

    def __init__(
        self,
        organization: Organization,
        name: str,
        node_name: str,
        public_key: RSAPublicKey,
        validator: bool = False,
    ) -> None:
        self.organization = organization
        self.name = name
        self.node_name = node_name
        self.public_key = public_key
        self.validator = validator

    @classmethod
    def from_record(cls, organization: Organization, record: ClientRecord) -> Client:
        try:
            public_key = load_public_key(record.public_key)
        except ValueError as exc:
            raise ChefParseError(f"Client {record.clientname} has an invalid public key") from exc
        return cls(organization, record.clientname, record.name, public_key, record.validator)

    @property
    def path(self) -> str:
        return f"{self.organization.path}/clients/{self.name}"

    def __repr__(self) -> str:
        return f"Client({self.name!r}, organization={self.organization.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Client):
            return NotImplemented
        return self.organization == other.organization and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.organization, self.name))

    async def regenerate_key(self) -> RSAPrivateKey:
        """Ask the server for a new key pair and return its private half.

        The stored public key is replaced and the organization's client
        listing is invalidated.
        """
        payload = await self.organization.transport.send(
            self.path, "PUT", json.dumps({"name": self.name, "private_key": True})
        )
        record = parse_record(KeyPairRecord, payload, "client key pair")
        try:
            private_key = load_private_key(record.private_key)
        except SigningError as exc:
            raise ChefParseError(f"Server returned an unusable private key for {self.name}") from exc

        self.public_key = private_key.public_key()
        self.organization.clients_cache.invalidate()
        logger.info(f"Regenerated key for client {self.name}")
        return private_key

    async def delete(self) -> None:
        await self.organization.transport.send(self.path, "DELETE", "")
        self.organization.clients_cache.invalidate()
        logger.info(f"Deleted client {self.name} from {self.organization.name}")
