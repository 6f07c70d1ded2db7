from __future__ import annotations

from .base import BackendError, LocalEngine, PdfMerger, RemoteEngine, RemoteResponse
from .gotenberg import GotenbergClient
from .libreoffice import LOCAL_ENDPOINT, LibreOfficeConverter
from .pdf import PypdfMerger, page_count

__all__ = [
    "BackendError",
    "GotenbergClient",
    "LOCAL_ENDPOINT",
    "LibreOfficeConverter",
    "LocalEngine",
    "PdfMerger",
    "PypdfMerger",
    "RemoteEngine",
    "RemoteResponse",
    "page_count",
]
