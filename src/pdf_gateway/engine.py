from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import httpx
from loguru import logger

from .backends import GotenbergClient, LibreOfficeConverter, LocalEngine, PdfMerger, PypdfMerger, RemoteEngine
from .config import AppConfig
from .errors import GatewayError, InvalidOrder, error_code
from .logging import RunLogEntry, RunLogger
from .merge import MergeOrchestrator
from .models import (
    ConversionOutcome,
    ConversionRequest,
    ConversionType,
    Deliverable,
    InputItem,
    validate_request,
)
from .router import ConversionRouter
from .sessions import SessionRecord, SessionStatus, SessionStore
from .utils import generate_request_id


class ConversionEngine:
    """Compose routing, sessions and merging into the direct and staged workflows."""

    def __init__(
        self,
        config: AppConfig,
        remote: RemoteEngine,
        local: LocalEngine | None,
        merger: PdfMerger,
        *,
        store: SessionStore | None = None,
        start_sweeper: bool = True,
    ) -> None:
        self._config = config
        self._remote = remote
        self._router = ConversionRouter(remote, local)
        self._merge = MergeOrchestrator(merger)
        self._store = store or SessionStore(config, start_sweeper=start_sweeper)
        self._audit = RunLogger(config.runtime.work_dir / config.runtime.audit_file)
        workers = max(1, config.runtime.parallelism)
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="convert-worker")

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        start_sweeper: bool = True,
    ) -> "ConversionEngine":
        return cls(
            config,
            GotenbergClient.from_config(config.remote, transport=transport),
            LibreOfficeConverter.from_config(config.local),
            PypdfMerger(),
            start_sweeper=start_sweeper,
        )

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def audit_log(self) -> RunLogger:
        return self._audit

    # direct workflow

    def convert(self, request: ConversionRequest) -> Deliverable:
        request_id = generate_request_id()
        start = time.perf_counter()
        outcomes: list[ConversionOutcome] = []
        try:
            validate_request(request)
            self._merge.gate(request.items, request.conversion_type)
            outcomes = self._route_all(request)
            prefix = "url_converted" if request.conversion_type is ConversionType.URL else "converted"
            deliverable = self._merge.assemble(outcomes, filename_prefix=prefix)
        except Exception as exc:
            self._record(request_id, "direct", request.conversion_type.value, len(request.items), start,
                         error=exc, outcomes=outcomes)
            raise
        self._record(request_id, "direct", request.conversion_type.value, len(request.items), start,
                     deliverable=deliverable, outcomes=outcomes)
        logger.info(
            f"[Direct] {request_id}: {len(request.items)} {request.conversion_type.value} item(s) "
            f"-> {deliverable.size_bytes} bytes"
        )
        return deliverable

    def _route_all(self, request: ConversionRequest) -> list[ConversionOutcome]:
        items = request.items
        if len(items) == 1:
            return [self._router.route(items[0], request.conversion_type, request.options)]
        futures = [
            self._executor.submit(self._router.route, item, request.conversion_type, request.options)
            for item in items
        ]
        return [future.result() for future in futures]

    # staged workflow

    def upload(self, files: Sequence[tuple[str, bytes]]) -> SessionRecord:
        request_id = generate_request_id()
        start = time.perf_counter()
        try:
            record = self._store.create_session(files)
        except GatewayError as exc:
            self._record(request_id, "upload", ConversionType.LIBREOFFICE_DOCUMENT.value, len(files), start,
                         error=exc)
            raise
        self._record(request_id, "upload", ConversionType.LIBREOFFICE_DOCUMENT.value, len(files), start,
                     session_id=record.session_id)
        return record

    def process(self, session_id: str, order: Sequence[str]) -> Deliverable:
        request_id = generate_request_id()
        start = time.perf_counter()
        outcomes: list[ConversionOutcome] = []
        item_count = len(order)
        try:
            record = self._store.resolve(session_id)
            item_count = len(record.items)
            names = self._validate_order(record, order)
            record = self._store.claim(session_id)
        except GatewayError as exc:
            self._record(request_id, "process", ConversionType.LIBREOFFICE_DOCUMENT.value, item_count, start,
                         error=exc, session_id=session_id)
            raise

        try:
            items = self._store.load_items(record, names)
            outcomes = self._route_local_all(items)
            deliverable = self._merge.assemble(outcomes, filename_prefix="merged")
            self._store.write_result(session_id, deliverable.filename, deliverable.content)
        except Exception as exc:
            self._store.finish(record, SessionStatus.FAILED, error_code=error_code(exc), error_message=str(exc))
            self._record(request_id, "process", ConversionType.LIBREOFFICE_DOCUMENT.value, item_count,
                         start, error=exc, outcomes=outcomes, session_id=session_id)
            raise
        else:
            self._store.finish(record, SessionStatus.COMPLETED, result_name=deliverable.filename)
        finally:
            self._store.schedule_destroy(session_id, self._config.runtime.session_grace_s)

        self._record(request_id, "process", ConversionType.LIBREOFFICE_DOCUMENT.value, item_count, start,
                     deliverable=deliverable, outcomes=outcomes, session_id=session_id)
        logger.info(f"[Staged] {session_id}: merged {deliverable.item_count} item(s) into {deliverable.filename}")
        return deliverable

    def _route_local_all(self, items: Sequence[InputItem]) -> list[ConversionOutcome]:
        if len(items) == 1:
            return [self._router.route_local(items[0])]
        futures = [self._executor.submit(self._router.route_local, item) for item in items]
        return [future.result() for future in futures]

    @staticmethod
    def _validate_order(record: SessionRecord, order: Sequence[str]) -> list[str]:
        names = list(order)
        known = record.item_by_name()
        duplicates = sorted({name for name in names if names.count(name) > 1})
        unknown = [name for name in names if name not in known]
        missing = [name for name in known if name not in names]
        problems: list[str] = []
        if duplicates:
            problems.append(f"duplicated: {', '.join(duplicates)}")
        if unknown:
            problems.append(f"unknown: {', '.join(unknown)}")
        if missing:
            problems.append(f"missing: {', '.join(missing)}")
        if problems:
            raise InvalidOrder(f"Processing order does not match the uploaded files ({'; '.join(problems)})")
        return names

    def status(self, session_id: str) -> SessionRecord:
        return self._store.resolve(session_id)

    def fetch_result(self, session_id: str) -> Deliverable:
        record = self._store.resolve(session_id)
        content = self._store.read_result(record)
        return Deliverable(content=content, filename=record.result_name or "merged.pdf", item_count=len(record.items))

    def delete(self, session_id: str) -> bool:
        return self._store.destroy(session_id)

    def sweep(self) -> list[str]:
        return self._store.expire_stale_sessions()

    # health

    def remote_available(self) -> bool:
        return self._remote.health()

    def _record(
        self,
        request_id: str,
        workflow: str,
        conversion_type: str,
        item_count: int,
        start: float,
        *,
        deliverable: Deliverable | None = None,
        error: Exception | None = None,
        outcomes: Sequence[ConversionOutcome] = (),
        session_id: str | None = None,
    ) -> None:
        self._audit.append(
            RunLogEntry(
                request_id=request_id,
                workflow=workflow,
                conversion_type=conversion_type,
                status="failure" if error is not None else "success",
                item_count=item_count,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                output_bytes=deliverable.size_bytes if deliverable is not None else 0,
                session_id=session_id,
                error_code=error_code(error) if error is not None else None,
                error_message=str(error) if error is not None else None,
                endpoints=[endpoint for outcome in outcomes for endpoint in outcome.endpoints],
            )
        )
        if error is not None:
            logger.warning(f"[{workflow.capitalize()}] {request_id} failed: {error_code(error)} - {error}")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
        self._store.shutdown()
        close = getattr(self._remote, "close", None)
        if callable(close):
            close()


__all__ = ["ConversionEngine"]
