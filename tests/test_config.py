import json
from pathlib import Path

from pdf_gateway.config import AppConfig, dump_config, load_config
from pdf_gateway.settings import Settings, apply_settings


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.toml")
    assert config.remote.base_url == "http://localhost:3000"
    assert config.remote.timeout_s == 60.0
    assert config.api.port == 8080
    assert config.runtime.session_grace_s == 3600.0
    assert config.sessions_dir == Path("runs") / "sessions"


def test_load_config_reads_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[runtime]",
                f'work_dir = "{(tmp_path / "work").as_posix()}"',
                "parallelism = 2",
                'log_level = "debug"',
                "[remote]",
                'base_url = "http://renderer:3000/"',
                "[local]",
                'binary = "/usr/bin/soffice"',
                "[api]",
                "port = 9000",
                'cors_origins = "https://app.example.com"',
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.runtime.work_dir == tmp_path / "work"
    assert config.runtime.parallelism == 2
    assert config.runtime.log_level == "DEBUG"
    assert config.remote.base_url == "http://renderer:3000"
    assert config.local.binary == "/usr/bin/soffice"
    assert config.api.port == 9000
    assert config.api.cors_origins == ("https://app.example.com",)


def test_environment_overrides_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GOTENBERG_URL", "http://gotenberg:3000/")
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("PDFGW_WORK_DIR", str(tmp_path / "env-runs"))
    monkeypatch.setenv("PDFGW_ENABLE_API", "false")
    settings = Settings(_env_file=None)
    config = apply_settings(AppConfig(), settings)
    assert config.remote.base_url == "http://gotenberg:3000"
    assert config.api.port == 9100
    assert config.runtime.work_dir == tmp_path / "env-runs"
    assert config.runtime.enable_api is False


def test_dump_config_is_json() -> None:
    payload = json.loads(dump_config(AppConfig()))
    assert set(payload) == {"runtime", "remote", "local", "api"}
    assert payload["remote"]["base_url"] == "http://localhost:3000"
