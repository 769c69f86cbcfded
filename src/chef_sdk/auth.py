"""Credentials and private-key loading for Chef server connections."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO, Any, cast

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from omegaconf import OmegaConf
from pydantic import BaseModel, Field, HttpUrl

from .errors import SigningError

PrivateKeySource = RSAPrivateKey | str | bytes | Path | IO[str] | IO[bytes]


def _search_roots() -> tuple[Path, ...]:
    """Directories a relative config path is tried against: cwd, then the project root."""
    return (Path.cwd(), Path(__file__).resolve().parents[2])


def _resolve_config_location(location: Path | str, *, source: str) -> Path:
    """Find exactly one Chef config file for ``location``.

    Absolute paths are used as given. Relative paths may match under several
    search roots; matches that resolve to the same file count once.
    """
    raw = Path(location).expanduser()
    candidates = [raw] if raw.is_absolute() else [root / raw for root in _search_roots()]
    matches = list(dict.fromkeys(candidate.resolve() for candidate in candidates if candidate.is_file()))

    if not matches:
        checked = "\n".join(str(candidate) for candidate in candidates)
        raise FileNotFoundError(f"Chef config file not found for {source}: {raw}\nChecked:\n{checked}")
    if len(matches) > 1:
        joined = ", ".join(str(match) for match in matches)
        raise RuntimeError(f"Multiple Chef config files found for {source}: {raw}. Candidates: {joined}")
    return matches[0]


def _load_normalized_config(location: Path) -> dict[str, Any]:
    raw_config = OmegaConf.load(location)
    config = OmegaConf.to_container(raw_config, resolve=True)
    if not isinstance(config, dict):
        raise ValueError("Chef config file must contain a mapping of credential keys.")
    return {str(key).upper(): value for key, value in config.items()}


def _require_keys(normalized: dict[str, Any]) -> None:
    required_keys = ["CHEF_SERVER_URL", "CHEF_CLIENT_NAME", "CHEF_CLIENT_KEY"]
    missing = [key for key in required_keys if not normalized.get(key)]
    if missing:
        joined = ", ".join(missing)
        raise ValueError(f"Missing Chef credentials: {joined}")


class Credentials(BaseModel):
    """Validated connection settings for a Chef server.

    Loaded from ``conf/chef.yml`` unless ``CHEF_CONFIG_PATH`` or an explicit
    path says otherwise.
    """

    server_url: HttpUrl = Field(
        description="Base URL of the Chef server",
        examples=["https://chef.example.com"],
    )
    client_name: str = Field(
        min_length=1,
        description="Client (user) name used to sign requests",
        examples=["pivotal"],
    )
    client_key: Path = Field(
        description="Path to the client's PEM-encoded RSA private key",
        examples=["~/.chef/pivotal.pem"],
    )

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> Credentials:
        """Create credentials from a YAML config file."""
        env_path = os.environ.get("CHEF_CONFIG_PATH")
        if env_path:
            location = _resolve_config_location(env_path, source="CHEF_CONFIG_PATH")
        elif path is not None:
            location = _resolve_config_location(path, source="path")
        else:
            location = _resolve_config_location("conf/chef.yml", source="default")

        normalized = _load_normalized_config(location)
        _require_keys(normalized)

        key_path = Path(str(normalized["CHEF_CLIENT_KEY"])).expanduser()
        if not key_path.is_absolute():
            key_path = location.parent / key_path

        return cls(
            server_url=cast(HttpUrl, str(normalized["CHEF_SERVER_URL"])),
            client_name=str(normalized["CHEF_CLIENT_NAME"]),
            client_key=key_path,
        )

    def load_private_key(self) -> RSAPrivateKey:
        return load_private_key(self.client_key)


def load_private_key(source: PrivateKeySource) -> RSAPrivateKey:
    """Return an RSA private key from a key object, PEM text, a path or a stream.

    Raises:
        SigningError: The material is not an RSA private key.
        FileNotFoundError: ``source`` is a path that does not exist.
    """
    if isinstance(source, RSAPrivateKey):
        return source
    if isinstance(source, RSAPublicKey):
        raise SigningError("A private key is required to sign Chef requests; got a public key")

    if isinstance(source, Path):
        pem: str | bytes = source.expanduser().read_bytes()
    elif isinstance(source, (str, bytes)):
        pem = source
    elif hasattr(source, "read"):
        pem = source.read()
    else:
        raise SigningError(f"Unsupported private key source: {type(source).__name__}")

    data = pem.encode("utf-8") if isinstance(pem, str) else pem
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningError("Could not parse the PEM private key") from exc

    if not isinstance(key, RSAPrivateKey):
        raise SigningError(f"Chef requests require an RSA private key, got {type(key).__name__}")
    return key


def load_public_key(pem: str | bytes) -> RSAPublicKey:
    """Parse a PEM public key (SubjectPublicKeyInfo or PKCS#1)."""
    data = pem.encode("utf-8") if isinstance(pem, str) else pem
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ValueError("Could not parse the PEM public key") from exc
    if not isinstance(key, RSAPublicKey):
        raise ValueError(f"Expected an RSA public key, got {type(key).__name__}")
    return key
