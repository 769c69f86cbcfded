"""Chef nodes."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from loguru import logger

from .attributes import AttributeList
from .models.records import NodeRecord

if TYPE_CHECKING:
    from .organization import Organization


class Node:
    """A node and its attributes.

    Only ``normal`` attributes and the run list are meant to be edited;
    ``automatic``, ``default`` and ``override`` are read-only trees.
    """

    def __init__(
        self,
        organization: Organization,
        name: str,
        *,
        chef_environment: str = "_default",
        run_list: list[str] | None = None,
        normal: AttributeList | None = None,
        automatic: AttributeList | None = None,
        default: AttributeList | None = None,
        override: AttributeList | None = None,
    ) -> None:
        self.organization = organization
        self.name = name
        self.chef_environment = chef_environment
        self.run_list: list[str] = list(run_list or [])
        self.normal = normal if normal is not None else AttributeList.mapping()
        self.automatic = (automatic if automatic is not None else AttributeList.mapping()).make_read_only()
        self.default = (default if default is not None else AttributeList.mapping()).make_read_only()
        self.override = (override if override is not None else AttributeList.mapping()).make_read_only()

    @classmethod
    def from_record(cls, organization: Organization, record: NodeRecord) -> Node:
        return cls(
            organization,
            record.name,
            chef_environment=record.chef_environment,
            run_list=record.run_list,
            normal=AttributeList.from_json(record.normal),
            automatic=AttributeList.from_json(record.automatic),
            default=AttributeList.from_json(record.default),
            override=AttributeList.from_json(record.override),
        )

    @property
    def path(self) -> str:
        return f"{self.organization.path}/nodes/{self.name}"

    def __repr__(self) -> str:
        return f"Node({self.name!r}, organization={self.organization.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.organization == other.organization and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.organization, self.name))

    def to_data(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "chef_type": "node",
            "json_class": "Chef::Node",
            "chef_environment": self.chef_environment,
            "run_list": list(self.run_list),
            "normal": self.normal.to_data(),
            "automatic": self.automatic.to_data(),
            "default": self.default.to_data(),
            "override": self.override.to_data(),
        }

    async def save_changes(self) -> None:
        """Upload the node document, replacing the server's copy."""
        await self.organization.transport.send(self.path, "PUT", json.dumps(self.to_data()))
        self.organization.nodes_cache.invalidate()
        logger.info(f"Saved node {self.name} in {self.organization.name}")

    async def delete(self) -> None:
        await self.organization.transport.send(self.path, "DELETE", "")
        self.organization.nodes_cache.invalidate()
        logger.info(f"Deleted node {self.name} from {self.organization.name}")
