"""
Deterministic byte encodings for everything that gets hashed or signed.

State roots, snapshot commitments, timer request ids and signed call payloads
all hash `domain_sep_bytes(label, version) || canonical_json_bytes(value)`.
Labels keep those digests from ever colliding with one another.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any


CANONICAL_ENCODING_VERSION = 1
DOMAIN_PREFIX = b"stakeboost:"

_HEX_RE = re.compile(r"^[0-9a-f]*$")


def _check_encodable(value: Any, path: str) -> None:
    """Raise TypeError naming the first value JSON could encode ambiguously."""
    if isinstance(value, float):
        raise TypeError(f"{path}: float values have no canonical encoding")
    if isinstance(value, str):
        for ch in value:
            if 0xD800 <= ord(ch) <= 0xDFFF:
                raise TypeError(f"{path}: lone surrogate in string")
    elif isinstance(value, dict):
        for k in value:
            if not isinstance(k, str):
                raise TypeError(f"{path}: object keys must be str, got {type(k).__name__}")
            _check_encodable(k, f"{path}.<key>")
            _check_encodable(value[k], f"{path}.{k}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace and no floats."""
    _check_encodable(value, "$")
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`stakeboost:<label>:v<version>` followed by a NUL byte."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii():
        raise ValueError("label must be ASCII")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def canonical_digest(label: str, value: Any, *, version: int = 1) -> str:
    """0x-prefixed sha256 of a domain-separated canonical encoding."""
    return sha256_hex(domain_sep_bytes(label, version=version) + canonical_json_bytes(value))


def canonical_hex_fixed(hex_str: str, *, nbytes: int, name: str) -> str:
    """Lowercase, 0x-prefixed form of a hex string that must encode exactly `nbytes` bytes."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str.strip().lower()
    if body.startswith("0x"):
        body = body[2:]
    if len(body) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {2 * nbytes})")
    if not _HEX_RE.fullmatch(body):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + body
