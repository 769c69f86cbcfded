"""Async client for the Chef server REST API with signed requests."""

from importlib import metadata

from .attributes import AttributeKind, AttributeList
from .auth import Credentials, load_private_key, load_public_key
from .cache import ResourceCache
from .clients import Client
from .cookbook import Cookbook, CookbookMetadata, CookbookVersion
from .errors import (
    ChefConnectionError,
    ChefError,
    ChefHTTPError,
    ChefNotFoundError,
    ChefParseError,
    ReadOnlyAttributeError,
    SigningError,
)
from .files import RemoteFile
from .node import Node
from .organization import Organization
from .server import ChefServer
from .signing import SignedRequest, sign_request, verify_signed_headers
from .transport import SignedTransport


def _resolve_version() -> str:
    """Return the installed distribution version or fall back to the project default."""

    try:
        return metadata.version("chef-server-sdk")
    except metadata.PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()

__all__ = [
    "AttributeKind",
    "AttributeList",
    "ChefConnectionError",
    "ChefError",
    "ChefHTTPError",
    "ChefNotFoundError",
    "ChefParseError",
    "ChefServer",
    "Client",
    "Cookbook",
    "CookbookMetadata",
    "CookbookVersion",
    "Credentials",
    "Node",
    "Organization",
    "ReadOnlyAttributeError",
    "RemoteFile",
    "ResourceCache",
    "SignedRequest",
    "SignedTransport",
    "SigningError",
    "__version__",
    "load_private_key",
    "load_public_key",
    "sign_request",
    "verify_signed_headers",
]
