"""Application settings loaded from the ``app.toml`` configuration file."""

import dataclasses
import socket
from datetime import timedelta
from typing import Any

from airkit import config

_DEFAULT_TIMEOUT_MS = 1000


@dataclasses.dataclass
class AppSettings:
    """Settings of the running application; timeouts are milliseconds."""

    app_name: str = ""
    registry_name: str = ""
    local_ip: str = ""
    app_port: int = 0
    pprof: bool = False
    is_debug: bool = False
    context_timeout: int = 0
    connect_timeout: int = 0
    write_timeout: int = 0
    read_timeout: int = 0


_FIELDS = {field.name.replace("_", ""): field for field in dataclasses.fields(AppSettings)}
_TRUE = {"1", "t", "true", "yes", "on"}
_FALSE = {"0", "f", "false", "no", "off", ""}

_settings = AppSettings()


def _coerce(value: Any, kind: type) -> Any:
    if kind is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(f"cannot read {value!r} as a boolean")
        return bool(value)
    if kind is int:
        return int(value)
    return str(value)


def _detect_local_ip() -> str:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("192.0.2.1", 80))
            return sock.getsockname()[0]
    except OSError:
        return ""


def init_app() -> AppSettings:
    """Load ``app.toml`` from the default configuration directory."""
    global _settings
    data = config.read_config("app", "toml")
    settings = AppSettings()
    for key, value in data.items():
        field = _FIELDS.get(key)
        if field is not None:
            setattr(settings, field.name, _coerce(value, type(field.default)))
    settings.local_ip = _detect_local_ip()
    _settings = settings
    return settings


def _duration(milliseconds: int) -> timedelta:
    return timedelta(milliseconds=milliseconds or _DEFAULT_TIMEOUT_MS)


def name() -> str:
    return _settings.app_name


def registry_name() -> str:
    return _settings.registry_name


def local_ip() -> str:
    return _settings.local_ip


def port() -> int:
    return _settings.app_port


def pprof() -> bool:
    return _settings.pprof


def debug() -> bool:
    return _settings.is_debug


def context_timeout() -> timedelta:
    """Context timeout; one second when unset."""
    return _duration(_settings.context_timeout)


def connect_timeout() -> timedelta:
    """Connect timeout; one second when unset."""
    return _duration(_settings.connect_timeout)


def write_timeout() -> timedelta:
    """Write timeout; one second when unset."""
    return _duration(_settings.write_timeout)


def read_timeout() -> timedelta:
    """Read timeout; one second when unset."""
    return _duration(_settings.read_timeout)