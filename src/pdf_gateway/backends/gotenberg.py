"""HTTP client for a Gotenberg-compatible remote renderer."""

from __future__ import annotations

import mimetypes
from html import escape
from typing import Mapping, Sequence

import httpx
from loguru import logger

from ..config import RemoteConfig
from ..options import RemoteEndpoint
from .base import BackendError, RemoteResponse

INDEX_HTML_NAME = "index.html"


def default_markdown_template(names: Sequence[str]) -> str:
    body = "\n".join(f'{{{{ toHTML "{name}" }}}}' for name in names)
    return (
        "<!doctype html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{escape(names[0]) if names else 'Document'}</title>\n"
        "</head>\n<body>\n"
        f"{body}\n"
        "</body>\n</html>\n"
    )


class GotenbergClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 60.0,
        health_timeout_s: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._health_timeout_s = health_timeout_s
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout_s, transport=transport)

    @classmethod
    def from_config(cls, config: RemoteConfig, transport: httpx.BaseTransport | None = None) -> "GotenbergClient":
        return cls(
            config.base_url,
            timeout_s=config.timeout_s,
            health_timeout_s=config.health_timeout_s,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def convert(
        self,
        endpoint: RemoteEndpoint,
        files: Sequence[tuple[str, bytes]],
        fields: Mapping[str, str],
    ) -> RemoteResponse:
        parts = self._build_parts(endpoint, files, fields)
        logger.debug(f"[Remote] POST {endpoint.value} ({len(files)} file(s))")
        try:
            response = self._client.post(endpoint.value, files=parts)
        except httpx.TimeoutException as exc:
            raise BackendError(
                f"Remote engine timed out after {self._timeout_s:.0f}s",
                endpoint=endpoint.value,
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendError(
                f"Failed to send request to remote engine: {exc}",
                endpoint=endpoint.value,
            ) from exc
        return RemoteResponse(
            status_code=response.status_code,
            content=response.content,
            endpoint=endpoint.value,
        )

    def _build_parts(
        self,
        endpoint: RemoteEndpoint,
        files: Sequence[tuple[str, bytes]],
        fields: Mapping[str, str],
    ) -> list[tuple[str, tuple[str | None, bytes | str] | tuple[str, bytes, str]]]:
        remaining = dict(fields)
        parts: list[tuple[str, tuple[str | None, bytes | str] | tuple[str, bytes, str]]] = []
        if endpoint is RemoteEndpoint.CHROMIUM_MARKDOWN:
            template = remaining.pop("indexHtml", None) or default_markdown_template([n for n, _ in files])
            parts.append(("files", (INDEX_HTML_NAME, template.encode("utf-8"), "text/html")))
        elif endpoint is RemoteEndpoint.CHROMIUM_HTML:
            # the renderer expects the entry document to be called index.html
            files = [(INDEX_HTML_NAME if i == 0 else name, content) for i, (name, content) in enumerate(files)]
        for name, content in files:
            mime, _ = mimetypes.guess_type(name)
            parts.append(("files", (name, content, mime or "application/octet-stream")))
        for key, value in remaining.items():
            parts.append((key, (None, value)))
        return parts

    def health(self) -> bool:
        try:
            response = self._client.get("/health", timeout=self._health_timeout_s)
        except httpx.HTTPError as exc:
            logger.debug(f"[Remote] Health check failed: {exc}")
            return False
        return response.status_code == 200

    def close(self) -> None:
        self._client.close()


__all__ = ["GotenbergClient", "INDEX_HTML_NAME", "default_markdown_template"]
