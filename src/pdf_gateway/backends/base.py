from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from ..options import RemoteEndpoint


class BackendError(RuntimeError):
    """A backend could not be reached or did not produce a PDF."""

    def __init__(
        self, message: str, *, endpoint: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


@dataclass(slots=True)
class RemoteResponse:
    status_code: int
    content: bytes
    endpoint: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def describe(self) -> str:
        body = self.content[:500].decode("utf-8", errors="replace").strip()
        return f"Remote engine returned status {self.status_code}: {body}"


class RemoteEngine(Protocol):
    def convert(
        self,
        endpoint: RemoteEndpoint,
        files: Sequence[tuple[str, bytes]],
        fields: Mapping[str, str],
    ) -> RemoteResponse:  # pragma: no cover - interface
        ...

    def health(self) -> bool:  # pragma: no cover - interface
        ...


class LocalEngine(Protocol):
    def convert(self, name: str, payload: bytes) -> bytes:  # pragma: no cover - interface
        ...


class PdfMerger(Protocol):
    def merge(self, sources: Sequence[bytes]) -> bytes:  # pragma: no cover - interface
        ...


__all__ = ["BackendError", "LocalEngine", "PdfMerger", "RemoteEngine", "RemoteResponse"]
