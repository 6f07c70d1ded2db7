import pytest

from pdf_gateway.detection import (
    CATALOG,
    DocumentKind,
    detect_kind,
    ensure_convertible,
    ensure_stageable,
)
from pdf_gateway.errors import UnsupportedFormat
from pdf_gateway.models import ConversionType, InputItem


def test_detect_kind_is_case_insensitive() -> None:
    assert detect_kind("Report.DOCX") is DocumentKind.OFFICE
    assert detect_kind("notes.markdown") is DocumentKind.MARKDOWN
    assert detect_kind("page.htm") is DocumentKind.HTML


def test_detect_kind_unknown_extension() -> None:
    with pytest.raises(UnsupportedFormat) as exc:
        detect_kind("sample.xyz")
    assert "Unsupported file extension" in str(exc.value)


@pytest.mark.parametrize(
    ("name", "conversion_type"),
    [
        ("page.html", ConversionType.LIBREOFFICE_DOCUMENT),
        ("report.docx", ConversionType.HTML),
        ("notes.md", ConversionType.HTML),
        ("scan.pdf", ConversionType.MARKDOWN),
    ],
)
def test_ensure_convertible_rejects_mismatched_inputs(name: str, conversion_type: ConversionType) -> None:
    with pytest.raises(UnsupportedFormat):
        ensure_convertible(InputItem.from_upload(0, name, b"data"), conversion_type)


def test_office_type_accepts_pdf() -> None:
    item = InputItem.from_upload(0, "scan.pdf", b"%PDF-1.4")
    assert ensure_convertible(item, ConversionType.LIBREOFFICE_DOCUMENT) is DocumentKind.PDF


def test_url_items_skip_extension_checks() -> None:
    item = InputItem.from_url("https://example.com")
    assert ensure_convertible(item, ConversionType.URL) is None


def test_only_office_and_pdf_can_be_staged() -> None:
    assert ensure_stageable("deck.pptx") is DocumentKind.OFFICE
    assert ensure_stageable("scan.pdf") is DocumentKind.PDF
    with pytest.raises(UnsupportedFormat):
        ensure_stageable("page.html")


def test_catalog_lists_every_conversion_type() -> None:
    assert [entry.id for entry in CATALOG] == list(ConversionType)
    payload = CATALOG[0].to_payload(("flatten",))
    assert payload["id"] == "libreoffice-document"
    assert payload["legacyId"] == "libreoffice"
    assert "pdf" in payload["supportedFormats"]
