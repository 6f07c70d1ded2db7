from __future__ import annotations

from pathlib import PurePath

from loguru import logger

from .backends import LOCAL_ENDPOINT, BackendError, LocalEngine, RemoteEngine
from .errors import BackendUnavailable, UnsupportedFormat
from .models import ConversionOptions, ConversionOutcome, ConversionType, InputItem
from .options import map_options, select_endpoint
from .utils import slugify

PASSTHROUGH = "passthrough"


class ConversionRouter:
    """Pick a backend for one input and apply the fallback policy.

    One attempt goes to the remote engine; only office documents get a
    second, local attempt. Backend failures never escape as exceptions:
    every item yields exactly one outcome.
    """

    def __init__(self, remote: RemoteEngine, local: LocalEngine | None = None) -> None:
        self._remote = remote
        self._local = local

    def route(
        self, item: InputItem, conversion_type: ConversionType, options: ConversionOptions
    ) -> ConversionOutcome:
        if self._is_pdf_passthrough(item, conversion_type):
            return ConversionOutcome.ready(item.index, item.content or b"", (PASSTHROUGH,))

        endpoint = select_endpoint(conversion_type, options)
        fields = map_options(conversion_type, options)
        files: list[tuple[str, bytes]] = []
        if item.is_url:
            fields = {"url": item.url or "", **fields}
        else:
            files.append((self._part_name(item, conversion_type), item.content or b""))

        attempted = [endpoint.value]
        try:
            response = self._remote.convert(endpoint, files, fields)
        except BackendError as exc:
            failure = str(exc)
        else:
            if response.ok:
                return ConversionOutcome.ready(item.index, response.content, attempted)
            failure = response.describe()

        logger.warning(f"[Router] Remote conversion failed for item {item.index} ({item.label}): {failure}")
        if not (conversion_type.has_local_fallback and self._local is not None):
            return ConversionOutcome.failed(item.index, BackendUnavailable.code, failure, attempted)
        logger.info(f"[Router] Falling back to local conversion for item {item.index}")
        return self._convert_locally(self._local, item, attempted, remote_failure=failure)

    def route_local(self, item: InputItem) -> ConversionOutcome:
        """Staged path: PDFs pass through, office documents use the local engine only."""

        if item.extension == ".pdf":
            return ConversionOutcome.ready(item.index, item.content or b"", (PASSTHROUGH,))
        if self._local is None:
            return ConversionOutcome.failed(
                item.index, BackendUnavailable.code, "No local conversion engine configured"
            )
        if item.is_url:
            return ConversionOutcome.failed(
                item.index, UnsupportedFormat.code, "URLs cannot be converted locally"
            )
        return self._convert_locally(self._local, item, [])

    def _convert_locally(
        self,
        local: LocalEngine,
        item: InputItem,
        attempted: list[str],
        *,
        remote_failure: str | None = None,
    ) -> ConversionOutcome:
        attempted = [*attempted, LOCAL_ENDPOINT]
        try:
            content = local.convert(item.name or f"item-{item.index}", item.content or b"")
        except BackendError as exc:
            detail = str(exc) if remote_failure is None else f"{remote_failure}; local fallback: {exc}"
            logger.warning(f"[Router] Local conversion failed for item {item.index}: {exc}")
            return ConversionOutcome.failed(item.index, BackendUnavailable.code, detail, attempted)
        return ConversionOutcome.ready(item.index, content, attempted)

    @staticmethod
    def _part_name(item: InputItem, conversion_type: ConversionType) -> str:
        """Upload name for the remote part.

        Markdown keeps the client's base name so a custom ``indexHtml`` can refer
        to it with ``toHTML``; other types get a filesystem-safe slug.
        """

        fallback = f"item-{item.index}"
        if conversion_type is ConversionType.MARKDOWN:
            return PurePath(item.name or "").name or fallback
        return slugify(item.name or fallback)

    @staticmethod
    def _is_pdf_passthrough(item: InputItem, conversion_type: ConversionType) -> bool:
        return conversion_type is ConversionType.LIBREOFFICE_DOCUMENT and item.extension == ".pdf"


__all__ = ["ConversionRouter", "PASSTHROUGH"]
