from __future__ import annotations

import io
from typing import Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from .base import BackendError


class PypdfMerger:
    """Concatenate PDFs page by page in the order given."""

    def merge(self, sources: Sequence[bytes]) -> bytes:
        writer = PdfWriter()
        for position, data in enumerate(sources):
            try:
                reader = PdfReader(io.BytesIO(data))
                for page in reader.pages:
                    writer.add_page(page)
            except (PdfReadError, ValueError) as exc:
                raise BackendError(f"Input {position} is not a readable PDF: {exc}") from exc
        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()


def page_count(data: bytes) -> int:
    return len(PdfReader(io.BytesIO(data)).pages)


__all__ = ["PypdfMerger", "page_count"]
