"""Translate engine-agnostic options into remote renderer form fields."""

from __future__ import annotations

from enum import Enum

from .models import PAGE_OPTIONS, RECOGNISED_OPTIONS, ConversionOptions, ConversionType


class RemoteEndpoint(str, Enum):
    LIBREOFFICE_CONVERT = "/forms/libreoffice/convert"
    LIBREOFFICE_MERGE = "/forms/libreoffice/merge"
    CHROMIUM_HTML = "/forms/chromium/convert/html"
    CHROMIUM_MARKDOWN = "/forms/chromium/convert/markdown"
    CHROMIUM_URL = "/forms/chromium/convert/url"


_ENDPOINTS: dict[ConversionType, RemoteEndpoint] = {
    ConversionType.LIBREOFFICE_DOCUMENT: RemoteEndpoint.LIBREOFFICE_CONVERT,
    ConversionType.HTML: RemoteEndpoint.CHROMIUM_HTML,
    ConversionType.MARKDOWN: RemoteEndpoint.CHROMIUM_MARKDOWN,
    ConversionType.URL: RemoteEndpoint.CHROMIUM_URL,
}


def select_endpoint(conversion_type: ConversionType, options: ConversionOptions) -> RemoteEndpoint:
    if conversion_type is ConversionType.LIBREOFFICE_DOCUMENT and options.merge:
        return RemoteEndpoint.LIBREOFFICE_MERGE
    return _ENDPOINTS[conversion_type]


def _format_number(value: float) -> str:
    return f"{value:.2f}"


def _page_fields(options: ConversionOptions) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name, value in options.numeric_fields().items():
        # zero and negatives are treated as unset
        if value is not None and value > 0:
            fields[name] = _format_number(value)
    if options.print_background:
        fields["printBackground"] = "true"
    return fields


def _office_fields(options: ConversionOptions) -> dict[str, str]:
    fields: dict[str, str] = {}
    if options.flatten:
        fields["flatten"] = "true"
    if options.landscape:
        fields["landscape"] = "true"
    if options.native_page_ranges:
        fields["nativePageRanges"] = options.native_page_ranges
    return fields


def map_options(conversion_type: ConversionType, options: ConversionOptions) -> dict[str, str]:
    """Return only the fields the selected engine recognises.

    ``merge`` never becomes a field: it only changes the endpoint (see
    :func:`select_endpoint`). Range checks happen at admission, so values
    that reach this point are forwarded as they are.
    """

    if conversion_type is ConversionType.LIBREOFFICE_DOCUMENT:
        return _office_fields(options)
    fields = _page_fields(options)
    if conversion_type is ConversionType.MARKDOWN and options.index_html:
        fields["indexHtml"] = options.index_html
    return fields


__all__ = [
    "PAGE_OPTIONS",
    "RECOGNISED_OPTIONS",
    "RemoteEndpoint",
    "map_options",
    "select_endpoint",
]
