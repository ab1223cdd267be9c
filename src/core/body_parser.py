"""
Request body parsing for JSON and URL-encoded payloads.

URL-encoded bodies are parsed in "extended" mode: bracket syntax in keys builds
nested objects and arrays, e.g. ``user[name]=ada&tags[]=a&tags[]=b`` parses to
``{"user": {"name": "ada"}, "tags": ["a", "b"]}``. Values are always strings.
"""
import json
import logging
import re
from typing import Any
from urllib.parse import parse_qsl

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Bracket segments past this depth are kept as one literal key
MAX_NESTING_DEPTH = 5
# Bodies larger than this are rejected with 413
DEFAULT_MAX_BODY_BYTES = 100 * 1024
# Numeric keys above this index stay object keys instead of becoming array slots
MAX_ARRAY_INDEX = 20

_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str, max_depth: int = MAX_NESTING_DEPTH) -> list[str]:
    """Split ``a[b][]`` into ``["a", "b", ""]``."""
    bracket = key.find("[")
    if bracket <= 0:
        return [key]

    segments = [key[:bracket]]
    position = bracket
    while len(segments) <= max_depth:
        match = _SEGMENT_RE.match(key, position)
        if match is None:
            break
        segments.append(match.group(1))
        position = match.end()

    if position < len(key):
        segments.append(key[position:])
    return segments


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(index): item for index, item in enumerate(value)}
    return {"0": value}


def _assign(node: dict[str, Any], path: list[str], value: str) -> None:
    key, rest = path[0], path[1:]

    if not rest:
        existing = node.get(key)
        if existing is None:
            node[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            node[key] = [existing, value]
        return

    if rest[0] == "":
        child = node.get(key)
        if child is None:
            child = node[key] = []
        elif not isinstance(child, list):
            child = node[key] = [child]
        if len(rest) == 1:
            child.append(value)
        else:
            item: dict[str, Any] = {}
            _assign(item, rest[1:], value)
            child.append(item)
        return

    child = node.get(key)
    child = _as_dict(child) if child is not None else {}
    node[key] = child
    _assign(child, rest, value)


def _compact(value: Any) -> Any:
    """Turn objects keyed only by small integers into arrays, recursively."""
    if isinstance(value, list):
        return [_compact(item) for item in value]
    if not isinstance(value, dict):
        return value

    compacted = {key: _compact(item) for key, item in value.items()}
    if compacted and all(
        key.isdigit() and int(key) <= MAX_ARRAY_INDEX for key in compacted
    ):
        return [compacted[key] for key in sorted(compacted, key=int)]
    return compacted


def parse_urlencoded(raw: str) -> dict[str, Any]:
    """Parse an extended URL-encoded string into a nested mapping."""
    result: dict[str, Any] = {}
    for key, value in parse_qsl(raw, keep_blank_values=True):
        if not key:
            continue
        _assign(result, _split_key(key), value)
    return {key: _compact(item) for key, item in result.items()}


def parse_json(raw: bytes) -> Any:
    """Parse a JSON body. Raises HTTPException(400) when malformed."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.info("Rejected malformed JSON body: %s", e)
        raise HTTPException(status_code=400, detail="Malformed JSON body") from e


def _too_large(size: int, max_bytes: int) -> HTTPException:
    logger.info("Rejected %s byte body (limit %s)", size, max_bytes)
    return HTTPException(status_code=413, detail="Request body too large")


def media_type(request: Request) -> str:
    """Return the request's content type without parameters (e.g. charset)."""
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower()


async def parse_body(request: Request, max_bytes: int = DEFAULT_MAX_BODY_BYTES) -> Any:
    """
    Decode the request body according to its content type.

    JSON and URL-encoded bodies are parsed; empty bodies and any other content
    type yield an empty mapping. Bodies over max_bytes raise HTTPException(413).
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise _too_large(int(declared), max_bytes)
    raw = await request.body()
    if len(raw) > max_bytes:
        raise _too_large(len(raw), max_bytes)
    if not raw.strip():
        return {}

    kind = media_type(request)
    if kind == JSON_CONTENT_TYPE:
        return parse_json(raw)
    if kind == FORM_CONTENT_TYPE:
        return parse_urlencoded(raw.decode("utf-8", errors="replace"))
    return {}
