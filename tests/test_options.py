import math

import pytest

from pdf_gateway.errors import ValidationFailure
from pdf_gateway.models import ConversionOptions, ConversionType, validate_options
from pdf_gateway.options import RECOGNISED_OPTIONS, RemoteEndpoint, map_options, select_endpoint


def test_office_fields_only_forward_office_options() -> None:
    options = ConversionOptions(
        flatten=True, landscape=True, native_page_ranges="1-3", paper_width=8.5, print_background=True
    )
    assert map_options(ConversionType.LIBREOFFICE_DOCUMENT, options) == {
        "flatten": "true",
        "landscape": "true",
        "nativePageRanges": "1-3",
    }


def test_merge_selects_endpoint_without_becoming_a_field() -> None:
    options = ConversionOptions(merge=True)
    assert select_endpoint(ConversionType.LIBREOFFICE_DOCUMENT, options) is RemoteEndpoint.LIBREOFFICE_MERGE
    assert select_endpoint(ConversionType.HTML, options) is RemoteEndpoint.CHROMIUM_HTML
    assert "merge" not in map_options(ConversionType.LIBREOFFICE_DOCUMENT, options)


def test_page_options_are_formatted_and_zero_is_unset() -> None:
    options = ConversionOptions(paper_width=8.5, paper_height=11, margin_top=0, scale=1, print_background=True)
    assert map_options(ConversionType.HTML, options) == {
        "paperWidth": "8.50",
        "paperHeight": "11.00",
        "scale": "1.00",
        "printBackground": "true",
    }


def test_url_conversion_drops_office_options() -> None:
    options = ConversionOptions(flatten=True, landscape=True, margin_left=0.5)
    assert map_options(ConversionType.URL, options) == {"marginLeft": "0.50"}


def test_markdown_forwards_template() -> None:
    options = ConversionOptions(index_html="<html></html>")
    assert map_options(ConversionType.MARKDOWN, options) == {"indexHtml": "<html></html>"}
    assert map_options(ConversionType.HTML, options) == {}
    assert "indexHtml" in RECOGNISED_OPTIONS[ConversionType.MARKDOWN]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, ConversionType.LIBREOFFICE_DOCUMENT),
        ("", ConversionType.LIBREOFFICE_DOCUMENT),
        ("libreoffice", ConversionType.LIBREOFFICE_DOCUMENT),
        ("chromium-html", ConversionType.HTML),
        ("Markdown", ConversionType.MARKDOWN),
        ("chromium-url", ConversionType.URL),
    ],
)
def test_conversion_type_parse_accepts_aliases(raw, expected) -> None:
    assert ConversionType.parse(raw) is expected


def test_conversion_type_parse_rejects_unknown() -> None:
    with pytest.raises(ValidationFailure):
        ConversionType.parse("excel")


@pytest.mark.parametrize(
    "options",
    [
        ConversionOptions(scale=3),
        ConversionOptions(margin_top=-1),
        ConversionOptions(paper_width=math.nan),
        ConversionOptions(paper_height=math.inf),
    ],
)
def test_validate_options_rejects_out_of_range(options: ConversionOptions) -> None:
    with pytest.raises(ValidationFailure):
        validate_options(options)


def test_validate_options_accepts_unset_scale() -> None:
    validate_options(ConversionOptions(scale=0))
    validate_options(ConversionOptions(scale=2))


def test_validate_options_ignores_fields_the_type_does_not_use() -> None:
    page_only = ConversionOptions(scale=5, margin_top=-1, paper_width=math.nan)
    validate_options(page_only, RECOGNISED_OPTIONS[ConversionType.LIBREOFFICE_DOCUMENT])
    with pytest.raises(ValidationFailure):
        validate_options(page_only, RECOGNISED_OPTIONS[ConversionType.HTML])
