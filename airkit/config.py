"""Configuration files looked up by name and type in a directory."""

from __future__ import annotations

import configparser
import json
import os
import tomllib
from collections.abc import Callable
from typing import Any

import yaml


def _load_ini(text: str) -> dict[str, Any]:
    parser = configparser.ConfigParser()
    parser.read_string(text)
    return {section: dict(parser.items(section)) for section in parser.sections()}


def _load_yaml(text: str) -> Any:
    loaded = yaml.safe_load(text)
    return {} if loaded is None else loaded


_LOADERS: dict[str, Callable[[str], Any]] = {
    "json": json.loads,
    "toml": tomllib.loads,
    "yaml": _load_yaml,
    "yml": _load_yaml,
    "ini": _load_ini,
}


def _fold_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key).lower(): _fold_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_fold_keys(item) for item in value]
    return value


class Config:
    """A configuration directory. Keys read from it are case-insensitive
    and come back lower-cased."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        os.stat(path)
        self.path = path

    def read_config(self, file: str, typ: str) -> dict[str, Any]:
        """Read ``<file>.<typ>`` (or ``<file>``) and return its settings."""
        loader = _LOADERS.get(typ.lower())
        if loader is None:
            raise ValueError(f"unsupported config type {typ!r}")

        candidates = [os.path.join(self.path, f"{file}.{typ}"), os.path.join(self.path, file)]
        location = next((c for c in candidates if os.path.isfile(c)), None)
        if location is None:
            raise FileNotFoundError(f"config file {file!r} not found in {os.fspath(self.path)!r}")

        with open(location, encoding="utf-8") as handle:
            text = handle.read()
        try:
            data = loader(text)
        except (yaml.YAMLError, configparser.Error) as exc:
            raise ValueError(f"cannot parse {location}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"{location} does not hold a mapping")
        return _fold_keys(data)


_default: Config | None = None


def _require() -> Config:
    if _default is None:
        raise RuntimeError("configuration is not initialised")
    return _default


def init_config(path: str | os.PathLike[str]) -> Config:
    """Make ``path`` the default configuration directory."""
    global _default
    _default = Config(path)
    return _default


def read_config(file: str, typ: str) -> dict[str, Any]:
    """Read a file from the default configuration directory."""
    return _require().read_config(file, typ)


def config_path() -> str | os.PathLike[str]:
    """Return the default directory as it was given."""
    return _require().path


def config_dir() -> str:
    """Return the absolute default directory."""
    return os.path.abspath(config_path())


def current_config() -> Config | None:
    """Return the default configuration, if any."""
    return _default