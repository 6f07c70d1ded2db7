import pytest

from pdf_gateway.backends import LOCAL_ENDPOINT
from pdf_gateway.models import ConversionOptions, ConversionType, InputItem
from pdf_gateway.options import RemoteEndpoint
from pdf_gateway.router import PASSTHROUGH, ConversionRouter


def _item(name: str, content: bytes = b"200") -> InputItem:
    return InputItem.from_upload(0, name, content)


def test_remote_success_uses_single_endpoint(make_remote, make_local) -> None:
    remote, local = make_remote(), make_local()
    outcome = ConversionRouter(remote, local).route(
        _item("report.docx"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions(landscape=True)
    )
    assert outcome.ok
    assert outcome.endpoints == (RemoteEndpoint.LIBREOFFICE_CONVERT.value,)
    assert local.calls == []
    endpoint, files, fields = remote.calls[0]
    assert endpoint is RemoteEndpoint.LIBREOFFICE_CONVERT
    assert files[0][0] == "report.docx"
    assert fields == {"landscape": "true"}


def test_office_falls_back_to_local_on_remote_503(make_remote, make_local) -> None:
    remote, local = make_remote(status_code=503), make_local()
    outcome = ConversionRouter(remote, local).route(
        _item("report.docx"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions()
    )
    assert outcome.ok
    assert outcome.endpoints == (RemoteEndpoint.LIBREOFFICE_CONVERT.value, LOCAL_ENDPOINT)
    assert local.calls == ["report.docx"]
    assert len(remote.calls) == 1


@pytest.mark.parametrize(
    ("conversion_type", "item"),
    [
        (ConversionType.HTML, InputItem.from_upload(0, "page.html", b"200")),
        (ConversionType.MARKDOWN, InputItem.from_upload(0, "notes.md", b"200")),
        (ConversionType.URL, InputItem.from_url("https://example.com")),
    ],
)
def test_browser_types_never_fall_back(make_remote, make_local, conversion_type, item) -> None:
    remote, local = make_remote(status_code=503), make_local()
    outcome = ConversionRouter(remote, local).route(item, conversion_type, ConversionOptions())
    assert not outcome.ok
    assert outcome.error_code == "BACKEND_UNAVAILABLE"
    assert "503" in (outcome.detail or "")
    assert local.calls == []
    assert len(remote.calls) == 1


def test_connection_error_without_local_engine_fails(make_remote) -> None:
    outcome = ConversionRouter(make_remote(raise_error=True)).route(
        _item("report.docx"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions()
    )
    assert not outcome.ok
    assert outcome.endpoints == (RemoteEndpoint.LIBREOFFICE_CONVERT.value,)


def test_failed_fallback_reports_both_attempts(make_remote, make_local) -> None:
    outcome = ConversionRouter(make_remote(raise_error=True), make_local(fail=True)).route(
        _item("report.docx"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions()
    )
    assert not outcome.ok
    assert outcome.endpoints == (RemoteEndpoint.LIBREOFFICE_CONVERT.value, LOCAL_ENDPOINT)
    assert "connection refused" in (outcome.detail or "")
    assert "local fallback" in (outcome.detail or "")


def test_pdf_passes_through_office_conversion(make_remote, pdf_factory) -> None:
    remote = make_remote()
    pdf = pdf_factory(150)
    outcome = ConversionRouter(remote).route(
        InputItem.from_upload(0, "scan.pdf", pdf), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions()
    )
    assert outcome.ok
    assert outcome.content == pdf
    assert outcome.endpoints == (PASSTHROUGH,)
    assert remote.calls == []


def test_url_item_is_sent_as_field(make_remote) -> None:
    remote = make_remote()
    outcome = ConversionRouter(remote).route(
        InputItem.from_url("https://example.com"), ConversionType.URL, ConversionOptions(print_background=True)
    )
    assert outcome.ok
    endpoint, files, fields = remote.calls[0]
    assert endpoint is RemoteEndpoint.CHROMIUM_URL
    assert files == []
    assert fields == {"url": "https://example.com", "printBackground": "true"}


def test_uploaded_names_are_sanitised(make_remote) -> None:
    remote = make_remote()
    ConversionRouter(remote).route(_item("../My Report.docx"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions())
    assert remote.calls[0][1][0][0] == "My-Report.docx"


def test_route_local_uses_local_engine_only(make_remote, make_local, pdf_factory) -> None:
    remote, local = make_remote(), make_local()
    router = ConversionRouter(remote, local)
    converted = router.route_local(_item("report.docx", b"300"))
    passthrough = router.route_local(InputItem.from_upload(1, "scan.pdf", pdf_factory()))
    assert converted.ok and converted.endpoints == (LOCAL_ENDPOINT,)
    assert passthrough.ok and passthrough.endpoints == (PASSTHROUGH,)
    assert remote.calls == []
    assert local.calls == ["report.docx"]


def test_markdown_parts_keep_their_client_name(make_remote) -> None:
    remote = make_remote()
    router = ConversionRouter(remote)
    router.route(_item("../My Notes.md", b"100"), ConversionType.MARKDOWN, ConversionOptions())
    router.route(_item("My Notes.docx", b"100"), ConversionType.LIBREOFFICE_DOCUMENT, ConversionOptions())
    assert remote.calls[0][1][0][0] == "My Notes.md"
    assert remote.calls[1][1][0][0] == "My-Notes.docx"
