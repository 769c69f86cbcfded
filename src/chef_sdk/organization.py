"""Chef organizations and their cached child collections."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from loguru import logger

from .cache import ResourceCache
from .clients import Client
from .cookbook import Cookbook
from .errors import ChefNotFoundError
from .models.records import ClientRecord, CookbookIndex, NodeRecord, OrganizationRecord, UrlIndex
from .node import Node
from .transform import parse_record

if TYPE_CHECKING:
    from .server import ChefServer
    from .transport import SignedTransport


class Organization:
    """An organization on a Chef server.

    ``clients()``, ``nodes()`` and ``cookbooks()`` are each cached in their own
    :class:`ResourceCache`; a mutation on a child only invalidates the
    collection that contains it.
    """

    def __init__(self, server: ChefServer, name: str, full_name: str, guid: UUID) -> None:
        self.server = server
        self.name = name
        self.full_name = full_name
        self.guid = guid
        self.clients_cache: ResourceCache[Client] = ResourceCache(
            self._load_clients, name=f"clients of {name}"
        )
        self.nodes_cache: ResourceCache[Node] = ResourceCache(self._load_nodes, name=f"nodes of {name}")
        self.cookbooks_cache: ResourceCache[Cookbook] = ResourceCache(
            self._load_cookbooks, name=f"cookbooks of {name}"
        )

    @classmethod
    def from_record(cls, server: ChefServer, record: OrganizationRecord) -> Organization:
        return cls(server, record.name, record.full_name, record.guid)

    @property
    def transport(self) -> SignedTransport:
        return self.server.transport

    @property
    def path(self) -> str:
        return f"/organizations/{self.name}"

    def __str__(self) -> str:
        return f"Chef Organization:{self.name}"

    def __repr__(self) -> str:
        return f"Organization({self.name!r}, full_name={self.full_name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Organization):
            return NotImplemented
        return self.server == other.server and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.server, self.name))

    # -- cached collections ------------------------------------------------

    async def clients(self) -> tuple[Client, ...]:
        return await self.clients_cache.get()

    async def nodes(self) -> tuple[Node, ...]:
        return await self.nodes_cache.get()

    async def cookbooks(self) -> tuple[Cookbook, ...]:
        return await self.cookbooks_cache.get()

    def clear_cache(self) -> None:
        self.clients_cache.invalidate()
        self.nodes_cache.invalidate()
        self.cookbooks_cache.invalidate()

    # -- direct lookups ----------------------------------------------------

    async def find_client(self, name: str) -> Client | None:
        """Fetch a client by name, bypassing the cache; ``None`` if it does not exist."""
        try:
            payload = await self.transport.send(f"{self.path}/clients/{name}")
        except ChefNotFoundError:
            logger.warning(f"Client {name} not found in organization {self.name}")
            return None
        return Client.from_record(self, parse_record(ClientRecord, payload, "client"))

    async def find_node(self, name: str) -> Node | None:
        """Fetch a node by name, bypassing the cache; ``None`` if it does not exist."""
        try:
            payload = await self.transport.send(f"{self.path}/nodes/{name}")
        except ChefNotFoundError:
            logger.warning(f"Node {name} not found in organization {self.name}")
            return None
        return Node.from_record(self, parse_record(NodeRecord, payload, "node"))

    async def find_cookbook(self, name: str) -> Cookbook | None:
        """Check that a cookbook exists and return it; ``None`` if it does not."""
        try:
            await self.transport.send(f"{self.path}/cookbooks/{name}")
        except ChefNotFoundError:
            logger.warning(f"Cookbook {name} not found in organization {self.name}")
            return None
        return Cookbook(self, name)

    # -- loaders -----------------------------------------------------------

    async def _load_clients(self) -> list[Client]:
        payload = await self.transport.send(f"{self.path}/clients")
        index = parse_record(UrlIndex, payload, "client index")

        clients: list[Client] = []
        for url in index.root.values():
            detail = await self.transport.send_raw(url)
            clients.append(Client.from_record(self, parse_record(ClientRecord, detail, "client")))

        logger.info(f"Loaded {len(clients)} clients for organization {self.name}")
        return clients

    async def _load_nodes(self) -> list[Node]:
        payload = await self.transport.send(f"{self.path}/nodes")
        index = parse_record(UrlIndex, payload, "node index")

        nodes: list[Node] = []
        for url in index.root.values():
            detail = await self.transport.send_raw(url)
            nodes.append(Node.from_record(self, parse_record(NodeRecord, detail, "node")))

        logger.info(f"Loaded {len(nodes)} nodes for organization {self.name}")
        return nodes

    async def _load_cookbooks(self) -> list[Cookbook]:
        # The cookbook index already names every cookbook; no per-item fetch.
        payload = await self.transport.send(f"{self.path}/cookbooks")
        index = parse_record(CookbookIndex, payload, "cookbook index")
        cookbooks = [Cookbook(self, name) for name in index.root]

        logger.info(f"Loaded {len(cookbooks)} cookbooks for organization {self.name}")
        return cookbooks
