"""Byte-level helpers: document file loading, canonical JSON and hashing.

Canonical form is the subset of JCS (RFC 8785) that DID documents need:
sorted object keys, no insignificant whitespace, UTF-8 output. Floats have
no single canonical spelling across implementations, so they are refused.
"""

from __future__ import annotations

import hashlib
import json
import pathlib
from typing import Any, Union

import yaml

PathLike = Union[str, pathlib.Path]

YAML_SUFFIXES = (".yaml", ".yml")


def sha256_bytes(data: bytes) -> str:
    """Lowercase hex SHA-256 of ``data``."""
    return hashlib.sha256(data).hexdigest()


def load_document_file(path: PathLike) -> Any:
    """Decode a document tree from disk.

    ``.yaml``/``.yml`` files go through ``yaml.safe_load``; anything else is
    read as JSON. Both are read as UTF-8.
    """
    p = pathlib.Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in YAML_SUFFIXES:
        return yaml.safe_load(text)
    return json.loads(text)


def _check_canonical(value: Any, where: str) -> None:
    if isinstance(value, float):
        raise ValueError(f"float at {where} has no canonical JSON form")
    if isinstance(value, dict):
        for key, item in value.items():
            _check_canonical(item, f"{where}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_canonical(item, f"{where}[{i}]")


def canonical_json_bytes(obj: Any) -> bytes:
    """Canonical UTF-8 JSON bytes of ``obj``; raises ValueError on floats."""
    _check_canonical(obj, "$")
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8")
