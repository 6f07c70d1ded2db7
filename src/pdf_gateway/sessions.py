from __future__ import annotations

import json
import shutil
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Sequence

from loguru import logger

from .config import AppConfig
from .constants import SESSION_FILE
from .detection import ensure_stageable
from .errors import AlreadyProcessing, EmptyInput, SessionNotFound, StorageFailure, ValidationFailure
from .models import InputItem
from .utils import atomic_write, atomic_write_bytes, generate_session_id, is_session_id, stored_name


ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)


def _parse_iso(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc).timestamp()
    except ValueError:
        return None


class SessionStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


FINISHED_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED})


@dataclass(slots=True)
class SessionItem:
    index: int
    name: str
    stored_name: str
    size_bytes: int


@dataclass(slots=True)
class SessionRecord:
    session_id: str
    status: SessionStatus
    created_at: str | None = None
    items: list[SessionItem] = field(default_factory=list)
    finished_at: str | None = None
    result_name: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def created_ts(self) -> float | None:
        return _parse_iso(self.created_at)

    def item_by_name(self) -> dict[str, SessionItem]:
        return {item.name: item for item in self.items}

    def to_payload(self) -> dict[str, object]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SessionRecord":
        raw_items = data.get("items")
        items: list[SessionItem] = []
        if isinstance(raw_items, list):
            for entry in raw_items:
                if not isinstance(entry, dict):
                    continue
                items.append(
                    SessionItem(
                        index=int(entry["index"]),
                        name=str(entry["name"]),
                        stored_name=str(entry["stored_name"]),
                        size_bytes=int(entry.get("size_bytes", 0)),
                    )
                )
        items.sort(key=lambda item: item.index)
        return cls(
            session_id=str(data.get("session_id")),
            status=SessionStatus(str(data.get("status", SessionStatus.UPLOADED.value))),
            created_at=str(data.get("created_at")) if data.get("created_at") else None,
            items=items,
            finished_at=str(data.get("finished_at")) if data.get("finished_at") else None,
            result_name=str(data.get("result_name")) if data.get("result_name") else None,
            error_code=str(data.get("error_code")) if data.get("error_code") else None,
            error_message=str(data.get("error_message")) if data.get("error_message") else None,
        )


class SessionStore:
    """Ephemeral per-upload workspaces under ``<work_dir>/sessions/<id>``.

    The ordered item list lives in ``session.json``; stored file names carry
    a zero-padded position prefix as well, so a plain directory listing keeps
    the upload order. A session is claimed for processing at most once.
    """

    def __init__(self, config: AppConfig, *, start_sweeper: bool = True) -> None:
        self._config = config
        self._root = config.sessions_dir
        self._ttl_s = config.runtime.session_ttl_s
        self._lock = threading.Lock()
        self._active: set[str] = set()
        self._removals: dict[str, float] = {}
        self._stop = threading.Event()
        self._root.mkdir(parents=True, exist_ok=True)
        self._sweeper: threading.Thread | None = None
        if start_sweeper and config.runtime.sweep_interval_s > 0:
            self._sweeper = threading.Thread(target=self._retention_loop, name="session-sweeper", daemon=True)
            self._sweeper.start()

    @property
    def root(self) -> Path:
        return self._root

    def session_dir(self, session_id: str) -> Path:
        return self._root / session_id

    def _record_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / SESSION_FILE

    def _input_dir(self, session_id: str) -> Path:
        return self.session_dir(session_id) / "input"

    def _output_dir(self, session_id: str) -> Path:
        return self.session_dir(session_id) / "output"

    def create_session(self, files: Sequence[tuple[str, bytes]]) -> SessionRecord:
        if not files:
            raise EmptyInput("An upload must contain at least one file")
        names = [name for name, _ in files]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValidationFailure(f"Duplicate file names in upload: {', '.join(duplicates)}")
        for name in names:
            ensure_stageable(name)

        session_id = generate_session_id()
        scope = self.session_dir(session_id)
        try:
            scope.mkdir(parents=True, exist_ok=False)
            input_dir = self._input_dir(session_id)
            input_dir.mkdir()
            items: list[SessionItem] = []
            for index, (name, content) in enumerate(files):
                target = stored_name(index, name)
                (input_dir / target).write_bytes(content)
                items.append(SessionItem(index=index, name=name, stored_name=target, size_bytes=len(content)))
            record = SessionRecord(
                session_id=session_id,
                status=SessionStatus.UPLOADED,
                created_at=_iso(_utc_now()),
                items=items,
            )
            self._write_record(record)
        except OSError as exc:
            shutil.rmtree(scope, ignore_errors=True)
            raise StorageFailure(f"Could not create session storage: {exc}") from exc
        logger.info(f"[Session] Created {session_id} with {len(items)} item(s)")
        return record

    def resolve(self, session_id: str) -> SessionRecord:
        if not is_session_id(session_id):
            raise SessionNotFound(f"Session not found: {session_id}")
        try:
            data = json.loads(self._record_path(session_id).read_text(encoding="utf-8"))
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise SessionNotFound(f"Session not found: {session_id}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageFailure(f"Session {session_id} is unreadable: {exc}") from exc
        return SessionRecord.from_dict(data)

    def exists(self, session_id: str) -> bool:
        try:
            self.resolve(session_id)
        except (SessionNotFound, StorageFailure):
            return False
        return True

    def load_items(self, record: SessionRecord, names: Sequence[str]) -> list[InputItem]:
        """Read the named items back as inputs, positioned by their order in ``names``."""

        by_name = record.item_by_name()
        items: list[InputItem] = []
        for position, name in enumerate(names):
            entry = by_name[name]
            path = self._input_dir(record.session_id) / entry.stored_name
            try:
                content = path.read_bytes()
            except OSError as exc:
                raise StorageFailure(f"Could not read {name} from session {record.session_id}: {exc}") from exc
            items.append(InputItem.from_upload(position, entry.name, content))
        return items

    def claim(self, session_id: str) -> SessionRecord:
        with self._lock:
            if session_id in self._active:
                raise AlreadyProcessing(f"Session {session_id} is already being processed")
            record = self.resolve(session_id)
            if record.status is not SessionStatus.UPLOADED:
                raise AlreadyProcessing(f"Session {session_id} was already processed ({record.status.value})")
            self._active.add(session_id)
        record.status = SessionStatus.PROCESSING
        try:
            self._write_record(record)
        except OSError as exc:
            self._release(session_id)
            raise StorageFailure(f"Could not update session {session_id}: {exc}") from exc
        return record

    def finish(
        self,
        record: SessionRecord,
        status: SessionStatus,
        *,
        result_name: str | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> SessionRecord:
        record.status = status
        record.finished_at = _iso(_utc_now())
        record.result_name = result_name
        record.error_code = error_code
        record.error_message = error_message
        try:
            self._write_record(record)
        except OSError as exc:
            raise StorageFailure(f"Could not update session {record.session_id}: {exc}") from exc
        finally:
            self._release(record.session_id)
        return record

    def is_active(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._active

    def _release(self, session_id: str) -> None:
        with self._lock:
            self._active.discard(session_id)

    def write_result(self, session_id: str, name: str, content: bytes) -> Path:
        path = self._output_dir(session_id) / name
        try:
            atomic_write_bytes(path, content)
        except OSError as exc:
            raise StorageFailure(f"Could not store result for session {session_id}: {exc}") from exc
        return path

    def read_result(self, record: SessionRecord) -> bytes:
        if record.status is not SessionStatus.COMPLETED or not record.result_name:
            raise SessionNotFound(f"No result available for session {record.session_id}")
        try:
            return (self._output_dir(record.session_id) / record.result_name).read_bytes()
        except FileNotFoundError as exc:
            raise SessionNotFound(f"No result available for session {record.session_id}") from exc
        except OSError as exc:
            raise StorageFailure(f"Could not read result for session {record.session_id}: {exc}") from exc

    def destroy(self, session_id: str) -> bool:
        """Remove a session's storage scope; calling it again is a no-op."""

        self._forget_removal(session_id)
        if not is_session_id(session_id):
            return False
        with self._lock:
            if session_id in self._active:
                raise AlreadyProcessing(f"Session {session_id} is busy and cannot be removed")
            # held while removing so a concurrent claim cannot start on a half-deleted scope
            self._active.add(session_id)
        try:
            shutil.rmtree(self.session_dir(session_id))
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageFailure(f"Could not remove session {session_id}: {exc}") from exc
        finally:
            self._release(session_id)
        logger.info(f"[Session] Destroyed {session_id}")
        return True

    def schedule_destroy(self, session_id: str, delay_s: float) -> None:
        """Mark a session for removal once ``delay_s`` has passed; the sweeper deletes it."""

        if delay_s <= 0:
            self._destroy_quietly(session_id)
            return
        with self._lock:
            self._removals[session_id] = time.time() + delay_s
        logger.debug(f"[Session] {session_id} scheduled for removal in {delay_s:.0f}s")

    def _destroy_quietly(self, session_id: str) -> bool:
        try:
            return self.destroy(session_id)
        except (AlreadyProcessing, StorageFailure) as exc:
            logger.warning(f"[Session] Removal of {session_id} failed: {exc}")
            return False

    def _forget_removal(self, session_id: str) -> None:
        with self._lock:
            self._removals.pop(session_id, None)

    def _removal_due(self, session_id: str, record: SessionRecord | None, now: float) -> bool:
        with self._lock:
            deadline = self._removals.get(session_id)
        if deadline is None and record is not None and record.status in FINISHED_STATUSES:
            # deadlines are in memory only; after a restart the record decides
            finished = _parse_iso(record.finished_at)
            if finished is not None:
                deadline = finished + self._config.runtime.session_grace_s
        return deadline is not None and deadline <= now

    def pending_removals(self) -> list[str]:
        with self._lock:
            return sorted(self._removals)

    def list_sessions(self) -> list[SessionRecord]:
        records: list[SessionRecord] = []
        if not self._root.exists():
            return records
        for path in sorted(self._root.iterdir()):
            if not path.is_dir() or not is_session_id(path.name):
                continue
            try:
                records.append(self.resolve(path.name))
            except (SessionNotFound, StorageFailure):
                continue
        return records

    def expire_stale_sessions(self, now: float | None = None) -> list[str]:
        """Destroy finished sessions past their grace period and any session older than the TTL."""

        if not self._root.exists():
            return []
        current = now if now is not None else time.time()
        removed: list[str] = []
        for path in list(self._root.iterdir()):
            session_id = path.name
            if not path.is_dir() or not is_session_id(session_id) or self.is_active(session_id):
                continue
            try:
                record: SessionRecord | None = self.resolve(session_id)
            except (SessionNotFound, StorageFailure):
                record = None
            if not (self._removal_due(session_id, record, current) or self._is_stale(path, record, current)):
                continue
            if self._destroy_quietly(session_id):
                removed.append(session_id)
        with self._lock:
            vanished = [sid for sid in self._removals if not self.session_dir(sid).exists()]
            for session_id in vanished:
                del self._removals[session_id]
        if removed:
            logger.info(f"[Session] Removed {len(removed)} expired session(s)")
        return removed

    def _is_stale(self, path: Path, record: SessionRecord | None, now: float) -> bool:
        if self._ttl_s <= 0:
            return False
        created = record.created_ts if record is not None else None
        if created is None:
            try:
                created = path.stat().st_mtime
            except FileNotFoundError:
                return False
        return created < now - self._ttl_s

    def _retention_loop(self) -> None:  # pragma: no cover - background thread timing
        while not self._stop.wait(self._config.runtime.sweep_interval_s):
            try:
                self.expire_stale_sessions()
            except OSError as exc:
                logger.warning(f"[Session] Retention sweep failed: {exc}")

    def _write_record(self, record: SessionRecord) -> None:
        atomic_write(self._record_path(record.session_id), json.dumps(record.to_payload(), indent=2))

    def shutdown(self) -> None:
        self._stop.set()


__all__ = [
    "SessionItem",
    "SessionRecord",
    "SessionStatus",
    "SessionStore",
]
