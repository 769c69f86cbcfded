"""Pydantic models for the Chef server JSON payloads the SDK consumes.

Each model validates one endpoint's documented shape; entities are built
from validated records only, so a missing required field fails the whole
operation at construction time.
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, RootModel


class OrganizationRef(BaseModel):
    """One entry of ``/users/{client}/organizations``."""

    name: str = Field(..., min_length=1)


class OrganizationMembership(BaseModel):
    organization: OrganizationRef


class OrganizationIndex(RootModel[list[OrganizationMembership]]):
    """``[{"organization": {"name": ...}}, ...]``"""


class OrganizationRecord(BaseModel):
    """Detail document from ``/organizations/{org}``."""

    name: str = Field(..., min_length=1)
    full_name: str
    guid: UUID


class UrlIndex(RootModel[dict[str, str]]):
    """Client and node index: ``{name: detail_url}``."""


class CookbookIndexEntry(BaseModel):
    url: str | None = None
    versions: list[dict[str, Any]] = Field(default_factory=list)


class CookbookIndex(RootModel[dict[str, CookbookIndexEntry]]):
    """Cookbook index: ``{name: {"url": ..., "versions": [...]}}``."""


class CookbookVersionRef(BaseModel):
    url: str = Field(..., min_length=1)
    version: str


class CookbookVersionsEntry(BaseModel):
    url: str | None = None
    versions: list[CookbookVersionRef] = Field(default_factory=list)


class CookbookVersionsIndex(RootModel[dict[str, CookbookVersionsEntry]]):
    """Version listing for one cookbook: ``{name: {"versions": [...]}}``."""


class ClientRecord(BaseModel):
    """Detail document from ``/organizations/{org}/clients/{name}``."""

    clientname: str = Field(..., min_length=1)
    name: str
    public_key: str = Field(..., min_length=1)
    validator: bool = False


class KeyPairRecord(BaseModel):
    """Response of a client key regeneration."""

    private_key: str = Field(..., min_length=1)
    public_key: str | None = None


class NodeRecord(BaseModel):
    """Detail document from ``/organizations/{org}/nodes/{name}``."""

    name: str = Field(..., min_length=1)
    chef_environment: str = "_default"
    run_list: list[str] = Field(default_factory=list)
    normal: dict[str, Any] = Field(default_factory=dict)
    automatic: dict[str, Any] = Field(default_factory=dict)
    default: dict[str, Any] = Field(default_factory=dict)
    override: dict[str, Any] = Field(default_factory=dict)


class FileRecord(BaseModel):
    """One file entry in a cookbook version segment."""

    url: str = Field(..., min_length=1)
    path: str
    name: str
    specificity: str = "default"
    checksum: str


class MetadataRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    version: str | None = None
    description: str | None = None
    long_description: str | None = None
    maintainer: str | None = None
    maintainer_email: str | None = None
    license: str | None = None
    recipes: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
    dependencies: dict[str, Any] = Field(default_factory=dict)
    suggestions: dict[str, Any] = Field(default_factory=dict)
    platforms: dict[str, Any] = Field(default_factory=dict)
    groupings: dict[str, Any] = Field(default_factory=dict)
    recommendations: dict[str, Any] = Field(default_factory=dict)
    providing: dict[str, Any] = Field(default_factory=dict)
    conflicting: dict[str, Any] = Field(default_factory=dict)
    replacing: dict[str, Any] = Field(default_factory=dict)


class CookbookVersionRecord(BaseModel):
    """Detail document from ``/organizations/{org}/cookbooks/{name}/{version}``."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(..., min_length=1)
    frozen: bool = Field(False, alias="frozen?")
    metadata: MetadataRecord = Field(default_factory=MetadataRecord)
    files: list[FileRecord] = Field(default_factory=list)
    definitions: list[FileRecord] = Field(default_factory=list)
    libraries: list[FileRecord] = Field(default_factory=list)
    attributes: list[FileRecord] = Field(default_factory=list)
    recipes: list[FileRecord] = Field(default_factory=list)
    providers: list[FileRecord] = Field(default_factory=list)
    resources: list[FileRecord] = Field(default_factory=list)
    templates: list[FileRecord] = Field(default_factory=list)
    root_files: list[FileRecord] = Field(default_factory=list)
