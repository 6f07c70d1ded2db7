from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path

from loguru import logger

from ..config import LocalConfig
from ..utils import slugify
from .base import BackendError

LOCAL_ENDPOINT = "local:soffice"


class LibreOfficeConverter:
    """Headless ``soffice`` office-to-PDF conversion.

    Every call runs in its own temporary directory with an isolated user
    profile, so concurrent conversions never share LibreOffice lock files.
    """

    def __init__(self, binary: str = "soffice", *, timeout_s: float = 120.0) -> None:
        self._binary = binary
        self._timeout_s = timeout_s

    @classmethod
    def from_config(cls, config: LocalConfig) -> "LibreOfficeConverter":
        return cls(config.binary, timeout_s=config.timeout_s)

    def convert(self, name: str, payload: bytes) -> bytes:
        with tempfile.TemporaryDirectory(prefix="pdfgw-lo-") as tmp:
            workdir = Path(tmp)
            source = workdir / slugify(name)
            source.write_bytes(payload)
            outdir = workdir / "out"
            outdir.mkdir()
            profile_uri = (workdir / "profile").as_uri()
            cmd = [
                self._binary,
                "--headless",
                "--nologo",
                "--nolockcheck",
                "--nodefault",
                "--nofirststartwizard",
                f"-env:UserInstallation={profile_uri}",
                "--convert-to",
                "pdf",
                "--outdir",
                str(outdir),
                str(source),
            ]
            logger.debug(f"[Local] Running LibreOffice: {' '.join(cmd)}")
            try:
                subprocess.run(cmd, check=True, capture_output=True, timeout=self._timeout_s)
            except subprocess.TimeoutExpired as exc:
                raise BackendError(
                    f"LibreOffice conversion timed out after {self._timeout_s:.0f}s",
                    endpoint=LOCAL_ENDPOINT,
                ) from exc
            except subprocess.CalledProcessError as exc:
                stderr = exc.stderr.decode(errors="replace").strip() if exc.stderr else ""
                raise BackendError(
                    f"LibreOffice error: {stderr or f'exit status {exc.returncode}'}",
                    endpoint=LOCAL_ENDPOINT,
                ) from exc
            except FileNotFoundError as exc:
                raise BackendError(
                    f"LibreOffice binary not found: {self._binary}",
                    endpoint=LOCAL_ENDPOINT,
                ) from exc

            expected = outdir / f"{source.stem}.pdf"
            if not expected.exists():
                produced = sorted(outdir.glob("*.pdf"))
                if not produced:
                    raise BackendError("No PDF produced by LibreOffice", endpoint=LOCAL_ENDPOINT)
                expected = produced[0]
            return expected.read_bytes()


__all__ = ["LOCAL_ENDPOINT", "LibreOfficeConverter"]
