from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath

from .errors import UnsupportedFormat
from .models import ConversionType, InputItem


class DocumentKind(str, Enum):
    OFFICE = "office"
    PDF = "pdf"
    HTML = "html"
    MARKDOWN = "markdown"


OFFICE_EXTENSIONS: tuple[str, ...] = (
    ".docx", ".xlsx", ".pptx", ".odt", ".ods", ".odp", ".doc", ".xls", ".ppt", ".rtf",
)

EXTENSION_MAP: dict[str, DocumentKind] = {
    **{ext: DocumentKind.OFFICE for ext in OFFICE_EXTENSIONS},
    ".pdf": DocumentKind.PDF,
    ".html": DocumentKind.HTML,
    ".htm": DocumentKind.HTML,
    ".md": DocumentKind.MARKDOWN,
    ".markdown": DocumentKind.MARKDOWN,
}

ACCEPTED_KINDS: dict[ConversionType, frozenset[DocumentKind]] = {
    ConversionType.LIBREOFFICE_DOCUMENT: frozenset({DocumentKind.OFFICE, DocumentKind.PDF}),
    ConversionType.HTML: frozenset({DocumentKind.HTML}),
    ConversionType.MARKDOWN: frozenset({DocumentKind.MARKDOWN}),
    ConversionType.URL: frozenset(),
}

STAGED_KINDS: frozenset[DocumentKind] = frozenset({DocumentKind.OFFICE, DocumentKind.PDF})


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    id: ConversionType
    name: str
    description: str
    supported_formats: tuple[str, ...]
    legacy_id: str

    def to_payload(self, options: tuple[str, ...]) -> dict[str, object]:
        return {
            "id": self.id.value,
            "legacyId": self.legacy_id,
            "name": self.name,
            "description": self.description,
            "supportedFormats": list(self.supported_formats),
            "options": list(options),
        }


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        id=ConversionType.LIBREOFFICE_DOCUMENT,
        name="LibreOffice Documents",
        description="Convert DOCX, XLSX, PPTX, ODT, ODS, ODP to PDF",
        supported_formats=tuple(ext.lstrip(".") for ext in OFFICE_EXTENSIONS) + ("pdf",),
        legacy_id="libreoffice",
    ),
    CatalogEntry(
        id=ConversionType.HTML,
        name="HTML to PDF",
        description="Convert HTML files to PDF using Chromium",
        supported_formats=("html", "htm"),
        legacy_id="chromium-html",
    ),
    CatalogEntry(
        id=ConversionType.MARKDOWN,
        name="Markdown to PDF",
        description="Convert Markdown files to PDF using Chromium",
        supported_formats=("md", "markdown"),
        legacy_id="chromium-markdown",
    ),
    CatalogEntry(
        id=ConversionType.URL,
        name="URL to PDF",
        description="Convert web pages to PDF using Chromium",
        supported_formats=("url",),
        legacy_id="chromium-url",
    ),
)


def detect_kind(name: str) -> DocumentKind:
    extension = PurePath(name).suffix.lower()
    kind = EXTENSION_MAP.get(extension)
    if kind is None:
        raise UnsupportedFormat(f"Unsupported file extension: {extension or '<none>'} ({name})")
    return kind


def ensure_convertible(item: InputItem, conversion_type: ConversionType) -> DocumentKind | None:
    """Reject an item whose extension the conversion type cannot turn into a PDF."""

    if conversion_type is ConversionType.URL:
        return None
    kind = detect_kind(item.name or "")
    if kind not in ACCEPTED_KINDS[conversion_type]:
        raise UnsupportedFormat(
            f"{item.name} cannot be converted with {conversion_type.value}",
        )
    return kind


def ensure_stageable(name: str) -> DocumentKind:
    kind = detect_kind(name)
    if kind not in STAGED_KINDS:
        raise UnsupportedFormat(f"{name} cannot be staged; only office documents and PDFs are accepted")
    return kind


__all__ = [
    "ACCEPTED_KINDS",
    "CATALOG",
    "CatalogEntry",
    "DocumentKind",
    "EXTENSION_MAP",
    "OFFICE_EXTENSIONS",
    "detect_kind",
    "ensure_convertible",
    "ensure_stageable",
]
