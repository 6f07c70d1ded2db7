from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from ...config import AppConfig
from ...engine import ConversionEngine
from ...errors import ValidationFailure
from ..dependencies import get_config, get_engine
from ..schemas import ProcessPayload, SessionView
from ..utils import pdf_response, read_uploads, run_sync

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", summary="Upload documents for later processing", status_code=201)
async def create_session(
    files: list[UploadFile] | None = File(None),
    engine: ConversionEngine = Depends(get_engine),
    config: AppConfig = Depends(get_config),
) -> dict[str, Any]:
    if not files:
        raise ValidationFailure("No files uploaded")
    uploads = await read_uploads(files, config)
    record = await run_sync(engine.upload, uploads)
    return SessionView.from_record(record).model_dump(by_alias=True)


@router.get("/{session_id}", summary="Retrieve session status")
def get_session(session_id: str, engine: ConversionEngine = Depends(get_engine)) -> dict[str, Any]:
    record = engine.status(session_id)
    return SessionView.from_record(record).model_dump(by_alias=True)


@router.post("/{session_id}/process", summary="Convert and merge a session in the given order")
async def process_session(
    session_id: str,
    payload: ProcessPayload,
    engine: ConversionEngine = Depends(get_engine),
) -> Response:
    deliverable = await run_sync(engine.process, session_id, payload.order)
    return pdf_response(deliverable)


@router.get("/{session_id}/result", summary="Download the merged result again")
def get_session_result(session_id: str, engine: ConversionEngine = Depends(get_engine)) -> Response:
    return pdf_response(engine.fetch_result(session_id))


@router.delete("/{session_id}", summary="Remove a session", status_code=204)
def delete_session(session_id: str, engine: ConversionEngine = Depends(get_engine)) -> Response:
    engine.delete(session_id)
    return Response(status_code=204)


__all__ = ["router"]
