from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "PDFGW_"

SESSION_PREFIX = "ses"
SESSION_FILE = "session.json"
AUDIT_FILE = "audit.jsonl"

__all__ = ["DEFAULT_CONFIG_PATH", "ENV_PREFIX", "SESSION_PREFIX", "SESSION_FILE", "AUDIT_FILE"]
