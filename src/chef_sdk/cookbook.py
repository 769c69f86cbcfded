"""Cookbooks, cookbook versions and their metadata."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from .attributes import AttributeList
from .errors import ChefNotFoundError
from .files import RemoteFile
from .models.records import (
    CookbookVersionRecord,
    CookbookVersionsIndex,
    FileRecord,
    MetadataRecord,
)
from .transform import parse_record

if TYPE_CHECKING:
    from .organization import Organization
    from .transport import SignedTransport

FILE_SEGMENTS = (
    "files",
    "definitions",
    "libraries",
    "attributes",
    "recipes",
    "providers",
    "resources",
    "templates",
    "root_files",
)


@dataclass(frozen=True, eq=False)
class CookbookMetadata:
    """Descriptive metadata of one cookbook version."""

    name: str
    version: str
    description: str
    long_description: str
    maintainer: str
    maintainer_email: str
    license: str
    recipes: AttributeList
    attributes: AttributeList
    dependencies: AttributeList
    suggestions: AttributeList
    platforms: AttributeList
    groupings: AttributeList
    recommendations: AttributeList
    providing: AttributeList
    conflicting: AttributeList
    replacing: AttributeList

    @classmethod
    def from_record(
        cls, record: MetadataRecord, *, cookbook_name: str, version: str
    ) -> CookbookMetadata:
        return cls(
            name=record.name or cookbook_name,
            version=record.version or version or "",
            description=record.description or "",
            long_description=record.long_description or "",
            maintainer=record.maintainer or "",
            maintainer_email=record.maintainer_email or "",
            license=record.license or "",
            recipes=AttributeList.from_json(record.recipes),
            attributes=AttributeList.from_json(record.attributes),
            dependencies=AttributeList.from_json(record.dependencies),
            suggestions=AttributeList.from_json(record.suggestions),
            platforms=AttributeList.from_json(record.platforms),
            groupings=AttributeList.from_json(record.groupings),
            recommendations=AttributeList.from_json(record.recommendations),
            providing=AttributeList.from_json(record.providing),
            conflicting=AttributeList.from_json(record.conflicting),
            replacing=AttributeList.from_json(record.replacing),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CookbookMetadata):
            return NotImplemented
        return self.name == other.name and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.name, self.version))


class Cookbook:
    """A named cookbook in an organization.

    Versions are not cached: every call to :meth:`versions` asks the server.
    """

    def __init__(self, organization: Organization, name: str) -> None:
        self.organization = organization
        self.name = name

    @property
    def transport(self) -> SignedTransport:
        return self.organization.transport

    @property
    def path(self) -> str:
        return f"{self.organization.path}/cookbooks/{self.name}"

    def __repr__(self) -> str:
        return f"Cookbook({self.name!r}, organization={self.organization.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cookbook):
            return NotImplemented
        return self.organization == other.organization and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.organization, self.name))

    async def versions(self) -> tuple[CookbookVersion, ...]:
        """Fetch every version of the cookbook with full details."""
        payload = await self.transport.send(self.path)
        index = parse_record(CookbookVersionsIndex, payload, "cookbook versions")
        entry = index.root.get(self.name)
        if entry is None:
            return ()

        versions: list[CookbookVersion] = []
        for ref in entry.versions:
            detail = await self.transport.send_raw(ref.url)
            record = parse_record(CookbookVersionRecord, detail, "cookbook version")
            versions.append(CookbookVersion.from_record(self, record))

        logger.debug(f"Fetched {len(versions)} versions of cookbook {self.name}")
        return tuple(versions)

    async def find_version(self, version: str) -> CookbookVersion | None:
        """Fetch one version directly; ``None`` if the server has no such version."""
        try:
            payload = await self.transport.send(f"{self.path}/{version}")
        except ChefNotFoundError:
            logger.warning(f"Cookbook {self.name} has no version {version}")
            return None
        record = parse_record(CookbookVersionRecord, payload, "cookbook version")
        return CookbookVersion.from_record(self, record)

    async def delete(self) -> None:
        """Delete every version of the cookbook.

        All deletes run concurrently and are awaited together. If any fails,
        the first failure is raised and the organization's cookbook listing
        is left as it was.
        """
        versions = await self.versions()
        results = await asyncio.gather(
            *(version._send_delete() for version in versions), return_exceptions=True
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                f"Deleting cookbook {self.name}: {len(failures)} of {len(versions)} version deletes failed"
            )
            raise failures[0]

        self.organization.cookbooks_cache.invalidate()
        logger.info(f"Deleted cookbook {self.name} ({len(versions)} versions)")


class CookbookVersion:
    """One uploaded version of a cookbook and its files."""

    def __init__(
        self,
        cookbook: Cookbook,
        version: str,
        metadata: CookbookMetadata,
        *,
        frozen: bool = False,
        segments: dict[str, tuple[RemoteFile, ...]] | None = None,
    ) -> None:
        self.cookbook = cookbook
        self.version = version
        self.metadata = metadata
        self.frozen = frozen
        segments = segments or {}
        self.files = segments.get("files", ())
        self.definitions = segments.get("definitions", ())
        self.libraries = segments.get("libraries", ())
        self.attributes = segments.get("attributes", ())
        self.recipes = segments.get("recipes", ())
        self.providers = segments.get("providers", ())
        self.resources = segments.get("resources", ())
        self.templates = segments.get("templates", ())
        self.root_files = segments.get("root_files", ())

    @classmethod
    def from_record(cls, cookbook: Cookbook, record: CookbookVersionRecord) -> CookbookVersion:
        transport = cookbook.transport

        def convert(files: list[FileRecord]) -> tuple[RemoteFile, ...]:
            return tuple(RemoteFile.from_record(transport, file) for file in files)

        segments = {segment: convert(getattr(record, segment)) for segment in FILE_SEGMENTS}
        metadata = CookbookMetadata.from_record(
            record.metadata, cookbook_name=cookbook.name, version=record.version
        )
        return cls(cookbook, record.version, metadata, frozen=record.frozen, segments=segments)

    @property
    def path(self) -> str:
        return f"{self.cookbook.path}/{self.version}"

    def __repr__(self) -> str:
        return f"CookbookVersion({self.cookbook.name!r}, {self.version!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CookbookVersion):
            return NotImplemented
        return self.cookbook == other.cookbook and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.cookbook, self.version))

    async def _send_delete(self) -> None:
        await self.cookbook.transport.send(self.path, "DELETE", "")

    async def delete(self) -> None:
        """Delete this version; the organization's cookbook listing is invalidated."""
        await self._send_delete()
        self.cookbook.organization.cookbooks_cache.invalidate()
        logger.info(f"Deleted cookbook {self.cookbook.name} version {self.version}")
