"""Body Parsing — pure decoders for JSON and URL-encoded request bodies.

Invariants:
    - Decoders never see more bytes than the configured ceiling (checked by caller)
    - Malformed input raises BadRequestError; nothing else escapes
    - Strict JSON: top-level value must be an object or an array
    - Empty JSON body parses to {}
    - Extended form syntax: a[b]=1 → {"a": {"b": "1"}}, a[]=1&a[]=2 → {"a": ["1", "2"]}
    - Numeric bracket keys up to ARRAY_LIMIT are list indices, compacted in
      index order: ids[1]=b&ids[0]=a → {"ids": ["a", "b"]}; larger ones stay
      string keys
"""

import json
import re
from enum import Enum
from urllib.parse import parse_qsl

from gateway.core.errors import BadRequestError

MAX_FORM_DEPTH = 5
ARRAY_LIMIT = 20

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


class BodyKind(str, Enum):
    """How a request body is decoded, from its Content-Type."""
    JSON = "json"
    FORM = "form"
    OTHER = "other"


def media_type(content_type: str | None) -> str:
    """Lower-cased media type without parameters."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def charset(content_type: str | None, default: str = "utf-8") -> str:
    if not content_type:
        return default
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"').lower()
    return default


def classify(content_type: str | None) -> BodyKind:
    mt = media_type(content_type)
    if mt == "application/json" or mt.endswith("+json"):
        return BodyKind.JSON
    if mt == "application/x-www-form-urlencoded":
        return BodyKind.FORM
    return BodyKind.OTHER


def _decode(raw: bytes, encoding: str) -> str:
    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        raise BadRequestError(f"Request body is not valid {encoding}")


def parse_json_body(raw: bytes, encoding: str = "utf-8", strict: bool = True):
    """Decode a JSON body; empty → {}."""
    text = _decode(raw, encoding)
    if not text.strip():
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise BadRequestError(f"Invalid JSON body: {e.msg} at position {e.pos}")
    if strict and not isinstance(value, (dict, list)):
        raise BadRequestError(
            "Invalid JSON body: top-level value must be an object or array",
        )
    return value


def _split_key(key: str) -> list[str]:
    m = _BRACKET_KEY.match(key)
    if not m:
        return [key]
    parts = [m.group(1)] + _BRACKET_PART.findall(m.group(2))
    if len(parts) > MAX_FORM_DEPTH + 1:
        # too deep: keep the remainder as one literal key
        return parts[:MAX_FORM_DEPTH] + ["[" + "][".join(parts[MAX_FORM_DEPTH:]) + "]"]
    return parts


class _Indexed(dict):
    """Array under construction: int index → value, compacted when finished."""


def _index(segment: str) -> int | None:
    if segment.isascii() and segment.isdigit() and int(segment) <= ARRAY_LIMIT:
        return int(segment)
    return None


def _is_list_segment(segment: str) -> bool:
    return segment == "" or _index(segment) is not None


def _slot(node: dict, segment: str):
    """Key under which a segment is stored in node; "" appends."""
    if isinstance(node, _Indexed):
        if segment == "":
            return max(node, default=-1) + 1
        return _index(segment)
    if segment == "":
        return str(len(node))
    return segment


def _container_for(existing, segment: str) -> dict:
    """Child node able to hold segment, converting what is already there."""
    list_like = _is_list_segment(segment)
    if existing is None:
        return _Indexed() if list_like else {}
    if isinstance(existing, _Indexed):
        if list_like:
            return existing
        return {str(k): v for k, v in existing.items()}
    if isinstance(existing, dict):
        return existing
    return _Indexed({0: existing}) if list_like else {"": existing}


def _assign(node: dict, parts: list[str], value: str) -> None:
    key = _slot(node, parts[0])
    rest = parts[1:]
    if not rest:
        existing = node.get(key)
        if existing is None:
            node[key] = value
        elif isinstance(existing, _Indexed):
            existing[max(existing, default=-1) + 1] = value
        elif isinstance(existing, dict):
            existing[str(len(existing))] = value
        else:
            node[key] = _Indexed({0: existing, 1: value})
        return
    child = _container_for(node.get(key), rest[0])
    node[key] = child
    _assign(child, rest, value)


def _finish(value):
    if isinstance(value, _Indexed):
        return [_finish(value[k]) for k in sorted(value)]
    if isinstance(value, dict):
        return {k: _finish(v) for k, v in value.items()}
    return value


def parse_urlencoded_body(
    raw: bytes, encoding: str = "utf-8", extended: bool = True,
) -> dict:
    """Decode an application/x-www-form-urlencoded body."""
    text = _decode(raw, encoding)
    pairs = parse_qsl(text, keep_blank_values=True, encoding=encoding)
    result: dict = {}
    for key, value in pairs:
        parts = _split_key(key) if extended else [key]
        _assign(result, parts, value)
    return _finish(result)
