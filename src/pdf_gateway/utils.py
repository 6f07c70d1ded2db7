from __future__ import annotations

import os
import re
import secrets
import tempfile
import time
import uuid
from datetime import datetime
from pathlib import Path

from .constants import SESSION_PREFIX


SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")
SESSION_ID_RE = re.compile(rf"^{SESSION_PREFIX}-[0-9a-f]{{32}}$")
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "file"
    if len(normalized) > max_length:
        stem, dot, suffix = normalized.rpartition(".")
        if dot and len(suffix) < 10:
            normalized = stem[: max_length - len(suffix) - 1] + "." + suffix
        else:
            normalized = normalized[:max_length]
    return normalized


def generate_session_id() -> str:
    return f"{SESSION_PREFIX}-{uuid.uuid4().hex}"


def is_session_id(value: str) -> bool:
    return bool(SESSION_ID_RE.match(value))


def generate_request_id(prefix: str = "req") -> str:
    epoch_ms = int(time.time() * 1000)
    return f"{prefix}-{epoch_ms}-{secrets.token_hex(4)}"


def stored_name(index: int, name: str) -> str:
    """Storage name for an uploaded item; the zero-padded index keeps lexical order."""

    return f"{index:04d}_{slugify(name)}"


def timestamped_name(prefix: str, extension: str = ".pdf", now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"{prefix}_{moment.strftime(TIMESTAMP_FORMAT)}{extension}"


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, data.encode(encoding))


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def within_size_limit(payload: bytes, max_mb: int) -> bool:
    return len(payload) <= max_mb * 1024 * 1024


__all__ = [
    "atomic_write",
    "atomic_write_bytes",
    "generate_request_id",
    "generate_session_id",
    "is_session_id",
    "slugify",
    "stored_name",
    "timestamped_name",
    "within_size_limit",
]
