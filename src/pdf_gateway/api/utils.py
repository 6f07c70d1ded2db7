"""Helpers shared by the HTTP routers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Sequence, TypeVar

from fastapi import UploadFile
from fastapi.responses import Response

from ..config import AppConfig
from ..errors import UploadTooLarge
from ..models import Deliverable
from ..utils import within_size_limit

T = TypeVar("T")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread and return the result."""

    return await asyncio.to_thread(func, *args, **kwargs)


async def read_uploads(files: Sequence[UploadFile], config: AppConfig) -> list[tuple[str, bytes]]:
    """Read multipart uploads in arrival order, enforcing the size limit."""

    payloads: list[tuple[str, bytes]] = []
    for upload in files:
        content = await upload.read()
        if not within_size_limit(content, config.runtime.max_file_size_mb):
            raise UploadTooLarge(
                f"{upload.filename} exceeds the {config.runtime.max_file_size_mb} MB upload limit"
            )
        payloads.append((upload.filename or f"upload-{len(payloads)}", content))
    return payloads


def pdf_response(deliverable: Deliverable) -> Response:
    return Response(
        content=deliverable.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={deliverable.filename}"},
    )


__all__ = ["pdf_response", "read_uploads", "run_sync"]
