from __future__ import annotations

import io
import threading
import time
from pathlib import Path
from typing import Callable, Mapping, Sequence

import pytest
from pypdf import PdfReader, PdfWriter

from pdf_gateway.backends import BackendError, PypdfMerger, RemoteResponse
from pdf_gateway.config import AppConfig, RuntimeConfig
from pdf_gateway.engine import ConversionEngine
from pdf_gateway.options import RemoteEndpoint

URL_PAGE_WIDTH = 500.0


def blank_pdf(width: float = 200.0, height: float = 300.0) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def page_widths(data: bytes) -> list[float]:
    return [float(page.mediabox.width) for page in PdfReader(io.BytesIO(data)).pages]


def _width_from(payload: bytes) -> float:
    """Fake engines encode the page width of the rendered PDF in the upload body."""

    return float(payload.decode("ascii"))


class FakeRemote:
    def __init__(
        self,
        status_code: int = 200,
        *,
        raise_error: bool = False,
        delays: Mapping[str, float] | None = None,
        healthy: bool = True,
    ) -> None:
        self.status_code = status_code
        self.raise_error = raise_error
        self.delays = dict(delays or {})
        self.healthy = healthy
        self.calls: list[tuple[RemoteEndpoint, list[tuple[str, bytes]], dict[str, str]]] = []
        self._lock = threading.Lock()

    def convert(
        self,
        endpoint: RemoteEndpoint,
        files: Sequence[tuple[str, bytes]],
        fields: Mapping[str, str],
    ) -> RemoteResponse:
        with self._lock:
            self.calls.append((endpoint, list(files), dict(fields)))
        if self.raise_error:
            raise BackendError("connection refused", endpoint=endpoint.value)
        name = files[0][0] if files else fields.get("url", "")
        time.sleep(self.delays.get(name, 0))
        if self.status_code != 200:
            return RemoteResponse(self.status_code, b"engine down", endpoint.value)
        width = _width_from(files[0][1]) if files else URL_PAGE_WIDTH
        return RemoteResponse(200, blank_pdf(width), endpoint.value)

    def health(self) -> bool:
        return self.healthy


class FakeLocal:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def convert(self, name: str, payload: bytes) -> bytes:
        with self._lock:
            self.calls.append(name)
        if self.fail:
            raise BackendError("soffice exited with status 1", endpoint="local:soffice")
        return blank_pdf(_width_from(payload))


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return blank_pdf


@pytest.fixture
def widths_of() -> Callable[[bytes], list[float]]:
    return page_widths


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    runtime = RuntimeConfig(work_dir=tmp_path / "runs", parallelism=4, max_file_size_mb=1)
    return AppConfig(runtime=runtime)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def local() -> FakeLocal:
    return FakeLocal()


@pytest.fixture
def engine_factory(config: AppConfig):
    created: list[ConversionEngine] = []

    def build(remote: FakeRemote, local: FakeLocal | None = None) -> ConversionEngine:
        engine = ConversionEngine(config, remote, local, PypdfMerger(), start_sweeper=False)
        created.append(engine)
        return engine

    yield build
    for engine in created:
        engine.shutdown()


@pytest.fixture
def engine(engine_factory, remote: FakeRemote, local: FakeLocal) -> ConversionEngine:
    return engine_factory(remote, local)


@pytest.fixture
def make_remote() -> Callable[..., FakeRemote]:
    return FakeRemote


@pytest.fixture
def make_local() -> Callable[..., FakeLocal]:
    return FakeLocal
