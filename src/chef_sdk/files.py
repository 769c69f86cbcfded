"""Files stored with a cookbook version."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from loguru import logger

from .errors import ChefConnectionError
from .models.records import FileRecord

if TYPE_CHECKING:
    from .transport import SignedTransport


class RemoteFile:
    """A cookbook file downloadable from the server's file store."""

    def __init__(
        self,
        transport: SignedTransport,
        url: str,
        path: str,
        name: str,
        specificity: str,
        checksum: str,
    ) -> None:
        self._transport = transport
        self.url = url
        self.path = path
        self.name = name
        self.specificity = specificity
        self.checksum = checksum

    @classmethod
    def from_record(cls, transport: SignedTransport, record: FileRecord) -> RemoteFile:
        return cls(transport, record.url, record.path, record.name, record.specificity, record.checksum)

    def __str__(self) -> str:
        return f"ChefFile:{self.name}"

    def __repr__(self) -> str:
        return f"RemoteFile({self.path!r}, checksum={self.checksum!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteFile):
            return NotImplemented
        return self.url == other.url and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.url, self.name))

    async def open_stream(self) -> httpx.Response:
        """Open the file for streaming.

        The caller owns the response and must ``await response.aclose()``.
        """
        return await self._transport.send_stream(self.url)

    def _read_failed(self, exc: httpx.TransportError) -> ChefConnectionError:
        logger.debug(f"Reading {self.url} failed: {exc!r}")
        return ChefConnectionError(f"Reading {self.path} from {self.url} failed: {exc}")

    async def read(self) -> bytes:
        response = await self.open_stream()
        try:
            return await response.aread()
        except httpx.TransportError as exc:
            raise self._read_failed(exc) from exc
        finally:
            await response.aclose()

    async def download(self, destination: Path | str) -> Path:
        """Stream the file to ``destination`` and return its path.

        Chunks go to a ``.part`` file beside the target, which replaces the
        target only once the whole body has arrived.
        """
        target = Path(destination)
        partial = target.with_name(f"{target.name}.part")
        response = await self.open_stream()
        size = 0
        try:
            with open(partial, "wb") as handle:
                async for chunk in response.aiter_bytes():
                    handle.write(chunk)
                    size += len(chunk)
            partial.replace(target)
        except httpx.TransportError as exc:
            partial.unlink(missing_ok=True)
            raise self._read_failed(exc) from exc
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        finally:
            await response.aclose()

        logger.debug(f"Downloaded {self.path} ({size} bytes) to {target}")
        return target
