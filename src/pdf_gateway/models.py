"""Domain models for conversion requests and their outcomes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Collection, Sequence
from urllib.parse import urlparse

from .errors import ValidationFailure


class ConversionType(str, Enum):
    LIBREOFFICE_DOCUMENT = "libreoffice-document"
    HTML = "html"
    MARKDOWN = "markdown"
    URL = "url"

    @classmethod
    def parse(cls, value: str | None) -> "ConversionType":
        if value is None or not value.strip():
            return cls.LIBREOFFICE_DOCUMENT
        key = value.strip().lower()
        try:
            return cls(LEGACY_ALIASES.get(key, key))
        except ValueError as exc:
            raise ValidationFailure(f"Unknown conversion type: {value}") from exc

    @property
    def has_local_fallback(self) -> bool:
        return self is ConversionType.LIBREOFFICE_DOCUMENT


LEGACY_ALIASES: dict[str, str] = {
    "libreoffice": ConversionType.LIBREOFFICE_DOCUMENT.value,
    "chromium-html": ConversionType.HTML.value,
    "chromium-markdown": ConversionType.MARKDOWN.value,
    "chromium-url": ConversionType.URL.value,
}


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Engine-agnostic options; numeric zero or ``None`` means unset."""

    flatten: bool = False
    merge: bool = False
    landscape: bool = False
    print_background: bool = False
    paper_width: float | None = None
    paper_height: float | None = None
    margin_top: float | None = None
    margin_bottom: float | None = None
    margin_left: float | None = None
    margin_right: float | None = None
    scale: float | None = None
    native_page_ranges: str | None = None
    index_html: str | None = None

    def numeric_fields(self) -> dict[str, float | None]:
        return {
            "paperWidth": self.paper_width,
            "paperHeight": self.paper_height,
            "marginTop": self.margin_top,
            "marginBottom": self.margin_bottom,
            "marginLeft": self.margin_left,
            "marginRight": self.margin_right,
            "scale": self.scale,
        }


@dataclass(frozen=True, slots=True)
class InputItem:
    index: int
    name: str | None = None
    content: bytes | None = None
    url: str | None = None

    @classmethod
    def from_upload(cls, index: int, name: str, content: bytes) -> "InputItem":
        return cls(index=index, name=name, content=content)

    @classmethod
    def from_url(cls, url: str, index: int = 0) -> "InputItem":
        return cls(index=index, url=url)

    @property
    def is_url(self) -> bool:
        return self.url is not None

    @property
    def extension(self) -> str:
        if self.name is None:
            return ""
        return PurePath(self.name).suffix.lower()

    @property
    def label(self) -> str:
        return self.url if self.url is not None else (self.name or f"item-{self.index}")


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    conversion_type: ConversionType
    items: tuple[InputItem, ...]
    options: ConversionOptions = field(default_factory=ConversionOptions)

    @classmethod
    def from_uploads(
        cls,
        conversion_type: ConversionType,
        files: Sequence[tuple[str, bytes]],
        options: ConversionOptions | None = None,
    ) -> "ConversionRequest":
        items = tuple(InputItem.from_upload(i, name, content) for i, (name, content) in enumerate(files))
        return cls(conversion_type=conversion_type, items=items, options=options or ConversionOptions())

    @classmethod
    def for_url(cls, url: str, options: ConversionOptions | None = None) -> "ConversionRequest":
        return cls(
            conversion_type=ConversionType.URL,
            items=(InputItem.from_url(url),),
            options=options or ConversionOptions(),
        )


class OutcomeStatus(str, Enum):
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ConversionOutcome:
    index: int
    status: OutcomeStatus
    content: bytes | None = None
    error_code: str | None = None
    detail: str | None = None
    endpoints: tuple[str, ...] = ()

    @classmethod
    def ready(cls, index: int, content: bytes, endpoints: Sequence[str] = ()) -> "ConversionOutcome":
        return cls(index=index, status=OutcomeStatus.READY, content=content, endpoints=tuple(endpoints))

    @classmethod
    def failed(
        cls, index: int, error_code: str, detail: str, endpoints: Sequence[str] = ()
    ) -> "ConversionOutcome":
        return cls(
            index=index,
            status=OutcomeStatus.FAILED,
            error_code=error_code,
            detail=detail,
            endpoints=tuple(endpoints),
        )

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.READY


@dataclass(frozen=True, slots=True)
class Deliverable:
    content: bytes
    filename: str
    item_count: int

    @property
    def size_bytes(self) -> int:
        return len(self.content)


PAGE_OPTIONS: tuple[str, ...] = (
    "paperWidth",
    "paperHeight",
    "marginTop",
    "marginBottom",
    "marginLeft",
    "marginRight",
    "printBackground",
    "scale",
)

RECOGNISED_OPTIONS: dict[ConversionType, tuple[str, ...]] = {
    ConversionType.LIBREOFFICE_DOCUMENT: ("flatten", "landscape", "nativePageRanges", "merge"),
    ConversionType.HTML: PAGE_OPTIONS,
    ConversionType.MARKDOWN: PAGE_OPTIONS + ("indexHtml",),
    ConversionType.URL: PAGE_OPTIONS,
}


def validate_options(options: ConversionOptions, recognised: Collection[str] | None = None) -> None:
    """Range-check numeric options; names outside ``recognised`` are ignored, not rejected."""

    for name, value in options.numeric_fields().items():
        if value is None or (recognised is not None and name not in recognised):
            continue
        if math.isnan(value) or math.isinf(value):
            raise ValidationFailure(f"{name} must be a finite number")
        if value < 0:
            raise ValidationFailure(f"{name} must not be negative")
    if recognised is not None and "scale" not in recognised:
        return
    if options.scale is not None and options.scale != 0 and not 0 < options.scale <= 2:
        raise ValidationFailure("scale must be within (0, 2]")


def validate_request(request: ConversionRequest) -> None:
    """Admission checks; raise before any side effect happens."""

    if not request.items:
        raise ValidationFailure("A conversion request must reference at least one item")
    indices = sorted(item.index for item in request.items)
    if indices != list(range(len(indices))):
        raise ValidationFailure("Item positions must be unique and dense starting at 0")
    if request.conversion_type is ConversionType.URL:
        if len(request.items) != 1 or not request.items[0].is_url:
            raise ValidationFailure("URL conversion takes exactly one URL")
        url = request.items[0].url or ""
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValidationFailure(f"URL is required and must be http(s): {url or '<empty>'}")
    else:
        for item in request.items:
            if item.is_url or item.content is None or not item.name:
                raise ValidationFailure(
                    f"{request.conversion_type.value} conversion takes uploaded files, not URLs"
                )
    validate_options(request.options, RECOGNISED_OPTIONS[request.conversion_type])


__all__ = [
    "ConversionOptions",
    "ConversionOutcome",
    "ConversionRequest",
    "ConversionType",
    "Deliverable",
    "InputItem",
    "LEGACY_ALIASES",
    "OutcomeStatus",
    "PAGE_OPTIONS",
    "RECOGNISED_OPTIONS",
    "validate_options",
    "validate_request",
]
