"""Chef request signing (X-Ops-Sign algorithm=sha1;version=1.0)."""

from __future__ import annotations

import base64
import hashlib
import math
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlsplit

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPrivateNumbers, RSAPublicKey

from .errors import SigningError

SIGN_ALGORITHM = "algorithm=sha1;version=1.0"
CHEF_VERSION = "11.4.0"
AUTHORIZATION_CHUNK = 60
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class SignedRequest:
    url: str
    method: str
    headers: dict[str, str]
    body: str


def hash_content(value: str) -> str:
    """Return base64(SHA1(value)) over the UTF-8 bytes of ``value``."""
    return base64.b64encode(hashlib.sha1(value.encode("utf-8")).digest()).decode("ascii")


def format_timestamp(moment: datetime | None = None) -> str:
    """Format ``moment`` (default: now) as a UTC ``yyyy-MM-ddTHH:mm:ssZ`` string."""
    if moment is None:
        moment = datetime.now(UTC)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def _require(value: str | None, name: str) -> str:
    if value is None:
        raise SigningError(f"Cannot sign a request without {name}")
    return value


def canonical_request(method: str, path: str, body: str, timestamp: str, user_id: str) -> str:
    """Build the five-line string the server re-derives to verify a signature."""
    method = _require(method, "a method")
    path = _require(path, "a path")
    body = _require(body, "a body")
    timestamp = _require(timestamp, "a timestamp")
    user_id = _require(user_id, "a client name")
    if not method or not user_id or not timestamp:
        raise SigningError("Method, timestamp and client name must not be empty")

    return (
        f"Method:{method.upper()}\n"
        f"Hashed Path:{hash_content(path)}\n"
        f"X-Ops-Content-Hash:{hash_content(body)}\n"
        f"X-Ops-Timestamp:{timestamp}\n"
        f"X-Ops-UserId:{user_id}"
    )


def _modulus_size(modulus: int) -> int:
    return (modulus.bit_length() + 7) // 8


def _random_blinding_factor(modulus: int) -> int:
    while True:
        factor = secrets.randbelow(modulus - 2) + 2
        if math.gcd(factor, modulus) == 1:
            return factor


def _private_operation(value: int, numbers: RSAPrivateNumbers) -> int:
    """Return ``value ** d mod n`` using base blinding and the CRT parameters.

    The blinded input hides ``value`` from the exponentiation; unblinding
    yields the same result as the textbook operation.
    """
    public = numbers.public_numbers
    modulus = public.n
    factor = _random_blinding_factor(modulus)
    blinded = (value * pow(factor, public.e, modulus)) % modulus

    first = pow(blinded, numbers.dmp1, numbers.p)
    second = pow(blinded, numbers.dmq1, numbers.q)
    combined = second + numbers.q * ((numbers.iqmp * (first - second)) % numbers.p)

    result = (combined * pow(factor, -1, modulus)) % modulus
    if pow(result, public.e, modulus) != value:
        raise SigningError("RSA private-key operation produced an inconsistent signature")
    return result


def sign_canonical(canonical: str, private_key: RSAPrivateKey) -> bytes:
    """Apply the RSA private-key operation to the raw canonical bytes.

    The canonical bytes are PKCS#1 v1.5 type-1 padded and exponentiated
    directly; no digest and no DigestInfo are involved.
    """
    if not isinstance(private_key, RSAPrivateKey):
        raise SigningError("Chef requests must be signed with an RSA private key")

    numbers = private_key.private_numbers()
    modulus = numbers.public_numbers.n
    size = _modulus_size(modulus)
    message = canonical.encode("utf-8")
    if len(message) > size - 11:
        raise SigningError(
            f"Canonical request is {len(message)} bytes; a {modulus.bit_length()}-bit key "
            f"can sign at most {size - 11}"
        )

    block = b"\x00\x01" + b"\xff" * (size - 3 - len(message)) + b"\x00" + message
    signature = _private_operation(int.from_bytes(block, "big"), numbers)
    return signature.to_bytes(size, "big")


def chunk_signature(signature: str, width: int = AUTHORIZATION_CHUNK) -> list[str]:
    return [signature[start : start + width] for start in range(0, len(signature), width)]


def _host_header(url: str) -> str:
    parts = urlsplit(url)
    if not parts.hostname:
        raise SigningError(f"Cannot sign a request for a URL without a host: {url}")
    port = parts.port or _DEFAULT_PORTS.get(parts.scheme, 80)
    host = parts.hostname
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"
    return f"{host}:{port}"


def sign_request(
    client_name: str,
    url: str,
    private_key: RSAPrivateKey,
    method: str = "GET",
    body: str = "",
    timestamp: str | datetime | None = None,
) -> SignedRequest:
    """Sign a request and return the full header set to send with it."""
    url = _require(url, "a URL")
    client_name = _require(client_name, "a client name")
    body = _require(body, "a body")
    method = _require(method, "a method").upper()

    if isinstance(timestamp, datetime) or timestamp is None:
        timestamp = format_timestamp(timestamp)

    path = urlsplit(url).path or "/"
    canonical = canonical_request(method, path, body, timestamp, client_name)
    signature = base64.b64encode(sign_canonical(canonical, private_key)).decode("ascii")

    headers = {
        "Accept": "application/json",
        "X-Ops-Sign": SIGN_ALGORITHM,
        "X-Ops-UserId": client_name,
        "X-Ops-Timestamp": timestamp,
        "X-Ops-Content-Hash": hash_content(body),
        "Host": _host_header(url),
        "X-Chef-Version": CHEF_VERSION,
    }
    for index, line in enumerate(chunk_signature(signature), start=1):
        headers[f"X-Ops-Authorization-{index}"] = line

    return SignedRequest(url=url, method=method, headers=headers, body=body)


def _authorization_value(headers: dict[str, str]) -> str:
    prefix = "x-ops-authorization-"
    chunks: list[tuple[int, str]] = []
    for name, value in headers.items():
        if not name.startswith(prefix):
            continue
        suffix = name[len(prefix) :]
        if not suffix.isdigit():
            raise ValueError(f"Invalid authorization header: {name}")
        chunks.append((int(suffix), value))
    chunks.sort()
    if [index for index, _ in chunks] != list(range(1, len(chunks) + 1)):
        raise ValueError("Authorization headers are not numbered 1..N")
    return "".join(value for _, value in chunks)


def verify_signed_headers(
    headers: Mapping[str, str],
    public_key: RSAPublicKey,
    *,
    method: str,
    path: str,
    body: str = "",
) -> bool:
    """Check signed headers the way the Chef server does.

    Returns False for any malformed or mismatching signature.
    """
    normalized = {str(key).lower(): str(value) for key, value in headers.items()}
    try:
        if normalized.get("x-ops-content-hash") != hash_content(body):
            return False
        expected = canonical_request(
            method,
            path,
            body,
            normalized["x-ops-timestamp"],
            normalized["x-ops-userid"],
        ).encode("utf-8")
        signature = base64.b64decode(_authorization_value(normalized), validate=True)
    except (KeyError, ValueError, SigningError):
        return False

    numbers = public_key.public_numbers()
    size = _modulus_size(numbers.n)
    if len(signature) != size:
        return False
    block = pow(int.from_bytes(signature, "big"), numbers.e, numbers.n).to_bytes(size, "big")
    if not block.startswith(b"\x00\x01"):
        return False
    separator = block.find(b"\x00", 2)
    if separator < 10 or block[2:separator] != b"\xff" * (separator - 2):
        return False
    return block[separator + 1 :] == expected
