from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...config import AppConfig
from ...detection import CATALOG
from ...engine import ConversionEngine
from ...options import RECOGNISED_OPTIONS
from ..dependencies import get_config, get_engine
from ..utils import run_sync

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health(
    engine: ConversionEngine = Depends(get_engine),
    config: AppConfig = Depends(get_config),
) -> dict[str, str]:
    available = await run_sync(engine.remote_available)
    return {
        "status": "ok",
        "remote": "available" if available else "unavailable",
        "remoteUrl": config.remote.base_url,
    }


@router.get("/conversion-types", summary="List supported conversion types")
def conversion_types() -> dict[str, list[dict[str, Any]]]:
    return {"types": [entry.to_payload(RECOGNISED_OPTIONS[entry.id]) for entry in CATALOG]}


__all__ = ["router"]
