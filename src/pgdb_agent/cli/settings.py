"""Server aliases for the command line tool.

Stored as JSON at ``~/.config/pgdb/config.json``:
{"defaultServer": "default", "servers": {"default": "http://10.0.0.5:8080"}}
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, Field


def default_config_path() -> Path:
    return Path(os.environ.get("HOME", "")) / ".config" / "pgdb" / "config.json"


class CliSettings(BaseModel):
    """Persisted CLI settings."""

    default_server: str = Field(default="default", alias="defaultServer")
    servers: dict[str, str] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    def resolve_server_url(self, alias: str | None = None) -> tuple[str, str]:
        """Return ``(alias, url)`` for the given or default alias."""
        selected = alias or self.default_server
        url = self.servers.get(selected)
        if not url:
            raise ValueError(
                f"Server alias '{selected}' is not configured. "
                "Run: pgdb config set server.default <url>"
            )
        return selected, url


def load_settings(path: Path | None = None) -> CliSettings:
    path = path or default_config_path()
    try:
        text = path.read_text()
    except FileNotFoundError:
        return CliSettings()
    if not text.strip():
        return CliSettings()
    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return CliSettings(
            default_server=data.get("defaultServer") or "default",
            servers=data.get("servers") or {},
        )
    except ValueError as exc:
        raise ValueError(f"invalid settings file {path}: {exc}") from exc


def save_settings(settings: CliSettings, path: Path | None = None) -> None:
    path = path or default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    path.write_text(json.dumps(settings.model_dump(by_alias=True), indent=2) + "\n")


def validate_url(value: str) -> None:
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"URL must use http or https: {value}")
