"""Decode configuration content by the extension of its namespace."""

from __future__ import annotations

import json
import tomllib
from collections.abc import Callable
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict
import yaml


def _yaml(content: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid yaml: {exc}") from exc


def _xml(content: str) -> Any:
    try:
        return xmltodict.parse(content)
    except ExpatError as exc:
        raise ValueError(f"invalid xml: {exc}") from exc


_DECODERS: dict[str, Callable[[str], Any]] = {
    ".json": json.loads,
    ".txt": tomllib.loads,
    ".yaml": _yaml,
    ".yml": _yaml,
    ".xml": _xml,
}


def _extension(namespace: str) -> str:
    base = namespace.rpartition("/")[2]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def extract_conf(namespace: str, content: str) -> Any:
    """Decode ``content`` as JSON, TOML (``.txt``), YAML or XML."""
    ext = _extension(namespace)
    if not ext:
        raise ValueError("ext is empty, maybe it is not support properties type")
    decoder = _DECODERS.get(ext)
    if decoder is None:
        raise ValueError("namespace ext illegal")
    return decoder(content)