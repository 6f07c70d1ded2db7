import httpx
import pytest

from pdf_gateway.backends import BackendError, GotenbergClient
from pdf_gateway.backends.gotenberg import default_markdown_template
from pdf_gateway.options import RemoteEndpoint


def build_client(handler) -> GotenbergClient:
    return GotenbergClient("http://renderer:3000/", transport=httpx.MockTransport(handler))


def test_convert_posts_multipart_form() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(200, content=b"%PDF-1.4 fake")

    client = build_client(handler)
    response = client.convert(
        RemoteEndpoint.LIBREOFFICE_CONVERT, [("report.docx", b"docx-bytes")], {"landscape": "true"}
    )
    assert response.ok
    assert response.content == b"%PDF-1.4 fake"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/forms/libreoffice/convert"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'filename="report.docx"' in body
    assert b"docx-bytes" in body
    assert b'name="landscape"' in body


def test_html_entry_document_is_renamed() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200, content=b"%PDF")

    build_client(handler).convert(RemoteEndpoint.CHROMIUM_HTML, [("page.html", b"<p>hi</p>")], {})
    assert b'filename="index.html"' in bodies[0]
    assert b'filename="page.html"' not in bodies[0]


def test_markdown_gets_index_template() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200, content=b"%PDF")

    build_client(handler).convert(RemoteEndpoint.CHROMIUM_MARKDOWN, [("notes.md", b"# Title")], {})
    assert b'filename="index.html"' in bodies[0]
    assert b'filename="notes.md"' in bodies[0]
    assert b'toHTML "notes.md"' in bodies[0]


def test_custom_markdown_template_is_not_sent_as_field() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200, content=b"%PDF")

    build_client(handler).convert(
        RemoteEndpoint.CHROMIUM_MARKDOWN, [("notes.md", b"# Title")], {"indexHtml": "<html>custom</html>"}
    )
    assert b"<html>custom</html>" in bodies[0]
    assert b'name="indexHtml"' not in bodies[0]


def test_error_status_is_returned_not_raised() -> None:
    client = build_client(lambda request: httpx.Response(503, content=b"busy"))
    response = client.convert(RemoteEndpoint.CHROMIUM_URL, [], {"url": "https://example.com"})
    assert not response.ok
    assert "503" in response.describe()
    assert "busy" in response.describe()


def test_transport_failure_raises_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendError) as exc:
        build_client(handler).convert(RemoteEndpoint.LIBREOFFICE_CONVERT, [("a.docx", b"x")], {})
    assert exc.value.endpoint == "/forms/libreoffice/convert"


def test_health() -> None:
    assert build_client(lambda request: httpx.Response(200, json={"status": "up"})).health()
    assert not build_client(lambda request: httpx.Response(503)).health()

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert not build_client(refuse).health()


def test_default_markdown_template_lists_every_file() -> None:
    template = default_markdown_template(["a.md", "b.md"])
    assert template.index('toHTML "a.md"') < template.index('toHTML "b.md"')
