from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from ...config import AppConfig
from ...engine import ConversionEngine
from ...errors import ValidationFailure
from ...models import ConversionOptions, ConversionRequest, ConversionType
from ..dependencies import get_config, get_engine
from ..schemas import UrlConversionPayload
from ..utils import pdf_response, read_uploads, run_sync

router = APIRouter(tags=["conversion"])


def options_from_form(
    flatten: bool = Form(False),
    merge: bool = Form(False),
    landscape: bool = Form(False),
    print_background: bool = Form(False, alias="printBackground"),
    paper_width: float | None = Form(None, alias="paperWidth"),
    paper_height: float | None = Form(None, alias="paperHeight"),
    margin_top: float | None = Form(None, alias="marginTop"),
    margin_bottom: float | None = Form(None, alias="marginBottom"),
    margin_left: float | None = Form(None, alias="marginLeft"),
    margin_right: float | None = Form(None, alias="marginRight"),
    scale: float | None = Form(None),
    native_page_ranges: str | None = Form(None, alias="nativePageRanges"),
    index_html: str | None = Form(None, alias="indexHtml"),
) -> ConversionOptions:
    return ConversionOptions(
        flatten=flatten,
        merge=merge,
        landscape=landscape,
        print_background=print_background,
        paper_width=paper_width,
        paper_height=paper_height,
        margin_top=margin_top,
        margin_bottom=margin_bottom,
        margin_left=margin_left,
        margin_right=margin_right,
        scale=scale,
        native_page_ranges=native_page_ranges or None,
        index_html=index_html or None,
    )


@router.post("/convert", summary="Convert uploaded documents into one PDF")
async def convert_documents(
    files: list[UploadFile] | None = File(None),
    conversion_type: str | None = Form(None, alias="conversionType"),
    options: ConversionOptions = Depends(options_from_form),
    engine: ConversionEngine = Depends(get_engine),
    config: AppConfig = Depends(get_config),
) -> Response:
    if not files:
        raise ValidationFailure("No files uploaded")
    kind = ConversionType.parse(conversion_type)
    if kind is ConversionType.URL:
        raise ValidationFailure("Use /convert-url for URL conversions")
    uploads = await read_uploads(files, config)
    request = ConversionRequest.from_uploads(kind, uploads, options)
    deliverable = await run_sync(engine.convert, request)
    return pdf_response(deliverable)


@router.post("/convert-url", summary="Render a web page to PDF")
async def convert_url(
    payload: UrlConversionPayload,
    engine: ConversionEngine = Depends(get_engine),
) -> Response:
    request = ConversionRequest.for_url(payload.url.strip(), payload.options.to_options())
    deliverable = await run_sync(engine.convert, request)
    return pdf_response(deliverable)


__all__ = ["router", "options_from_form"]
