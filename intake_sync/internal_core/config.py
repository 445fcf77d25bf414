from __future__ import annotations

import os
from dataclasses import dataclass


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_csv(name: str, default: str) -> tuple[str, ...]:
    raw = _getenv_str(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _normalize_socket_path(raw: str) -> str:
    # No trailing slash; clients connect to the bare path.
    return "/" + raw.strip().strip("/")


@dataclass(frozen=True)
class SyncConfig:
    INTAKE_SOCKET_PATH: str
    INTAKE_HOST: str
    INTAKE_PORT: int
    INTAKE_LOG_LEVEL: str
    INTAKE_LEGACY_DRAFTS_ENABLED: bool
    INTAKE_CORS_ORIGINS: tuple[str, ...]


def load_config() -> SyncConfig:
    return SyncConfig(
        INTAKE_SOCKET_PATH=_normalize_socket_path(_getenv_str("INTAKE_SOCKET_PATH", "/api/socket")),
        INTAKE_HOST=_getenv_str("INTAKE_HOST", "0.0.0.0"),
        INTAKE_PORT=_getenv_int("INTAKE_PORT", _getenv_int("PORT", 3000)),
        INTAKE_LOG_LEVEL=_getenv_str("INTAKE_LOG_LEVEL", "INFO").upper(),
        INTAKE_LEGACY_DRAFTS_ENABLED=_getenv_bool("INTAKE_LEGACY_DRAFTS_ENABLED", True),
        INTAKE_CORS_ORIGINS=_getenv_csv("INTAKE_CORS_ORIGINS", "*"),
    )
