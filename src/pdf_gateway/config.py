from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .constants import AUDIT_FILE, DEFAULT_CONFIG_PATH


DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "https://zakuf.sidkhuntia.in",
    "https://www.zakuf.sidkhuntia.in",
    "http://localhost:5173",
)


@dataclass(slots=True)
class RemoteConfig:
    base_url: str = "http://localhost:3000"
    timeout_s: float = 60.0
    health_timeout_s: float = 5.0


@dataclass(slots=True)
class LocalConfig:
    binary: str = "soffice"
    timeout_s: float = 120.0


@dataclass(slots=True)
class RuntimeConfig:
    work_dir: Path = Path("runs")
    audit_file: str = AUDIT_FILE
    max_file_size_mb: int = 50
    parallelism: int = 4
    session_grace_s: float = 3600.0
    session_ttl_s: float = 86400.0
    sweep_interval_s: float = 300.0
    enable_api: bool = True
    log_level: str = "INFO"
    json_logs: bool = False


@dataclass(slots=True)
class APIConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    local: LocalConfig = field(default_factory=LocalConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @property
    def sessions_dir(self) -> Path:
        return self.runtime.work_dir / "sessions"


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    defaults = RuntimeConfig()
    return RuntimeConfig(
        work_dir=Path(str(data.get("work_dir", defaults.work_dir))),
        audit_file=str(data.get("audit_file", defaults.audit_file)),
        max_file_size_mb=int(data.get("max_file_size_mb", defaults.max_file_size_mb)),
        parallelism=int(data.get("parallelism", defaults.parallelism)),
        session_grace_s=float(data.get("session_grace_s", defaults.session_grace_s)),
        session_ttl_s=float(data.get("session_ttl_s", defaults.session_ttl_s)),
        sweep_interval_s=float(data.get("sweep_interval_s", defaults.sweep_interval_s)),
        enable_api=bool(data.get("enable_api", defaults.enable_api)),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
        json_logs=bool(data.get("json_logs", defaults.json_logs)),
    )


def _build_remote(data: Mapping[str, object] | None) -> RemoteConfig:
    if not data:
        return RemoteConfig()
    defaults = RemoteConfig()
    return RemoteConfig(
        base_url=str(data.get("base_url", defaults.base_url)).rstrip("/"),
        timeout_s=float(data.get("timeout_s", defaults.timeout_s)),
        health_timeout_s=float(data.get("health_timeout_s", defaults.health_timeout_s)),
    )


def _build_local(data: Mapping[str, object] | None) -> LocalConfig:
    if not data:
        return LocalConfig()
    defaults = LocalConfig()
    return LocalConfig(
        binary=str(data.get("binary", defaults.binary)),
        timeout_s=float(data.get("timeout_s", defaults.timeout_s)),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    defaults = APIConfig()
    return APIConfig(
        host=str(data.get("host", defaults.host)),
        port=int(data.get("port", defaults.port)),
        cors_origins=_tuple_of_strings(data.get("cors_origins"), defaults.cors_origins),
    )


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported origins configuration: {value!r}")


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        remote=_build_remote(_section(raw, "remote")),
        local=_build_local(_section(raw, "local")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "work_dir": str(config.runtime.work_dir),
            "audit_file": config.runtime.audit_file,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "parallelism": config.runtime.parallelism,
            "session_grace_s": config.runtime.session_grace_s,
            "session_ttl_s": config.runtime.session_ttl_s,
            "sweep_interval_s": config.runtime.sweep_interval_s,
            "enable_api": config.runtime.enable_api,
            "log_level": config.runtime.log_level,
            "json_logs": config.runtime.json_logs,
        },
        "remote": {
            "base_url": config.remote.base_url,
            "timeout_s": config.remote.timeout_s,
            "health_timeout_s": config.remote.health_timeout_s,
        },
        "local": {
            "binary": config.local.binary,
            "timeout_s": config.local.timeout_s,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
            "cors_origins": list(config.api.cors_origins),
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "APIConfig",
    "AppConfig",
    "LocalConfig",
    "RemoteConfig",
    "RuntimeConfig",
    "dump_config",
    "load_config",
]
