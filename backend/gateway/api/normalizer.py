"""Request Normalizer — turns a Starlette request into the shape route groups consume.

Invariants:
    - Size ceiling checked before any parsing (declared Content-Length first,
      then a running count while the body streams in) → PayloadTooLargeError (413)
    - Reading stops at the first chunk past the ceiling; an oversized body is
      never buffered whole
    - raw_body is always the exact bytes received, even when parsing succeeds
    - Client disconnect mid-body → ClientDisconnectedError (400)
    - Malformed JSON → BadRequestError (400); never reaches a route group
    - Content types other than JSON / URL-encoded leave body=None
"""

from dataclasses import dataclass, replace
from typing import Any

from starlette.datastructures import Headers, QueryParams
from starlette.requests import ClientDisconnect, Request

from gateway.core.body_parsing import (
    BodyKind, charset, classify, parse_json_body, parse_urlencoded_body,
)
from gateway.core.errors import (
    BadRequestError, ClientDisconnectedError, PayloadTooLargeError,
)


def original_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    path = request.url.path
    return f"{path}?{query}" if query else path


@dataclass(frozen=True)
class NormalizedRequest:
    """What a route group receives: parsed body next to the untouched bytes."""
    method: str
    path: str
    headers: Headers
    query: QueryParams
    body: Any
    raw_body: bytes
    content_type: str | None
    request: Request
    prefix: str = ""
    sub_path: str = "/"

    @property
    def original_url(self) -> str:
        return original_url(self.request)

    def mounted_at(self, prefix: str) -> "NormalizedRequest":
        """Copy with prefix stripped into sub_path."""
        rest = self.path[len(prefix):] if prefix != "/" else self.path
        return replace(self, prefix=prefix, sub_path=rest or "/")


def check_declared_length(headers: Headers, limit: int) -> None:
    declared = headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError:
        raise BadRequestError("Invalid Content-Length header")
    if length > limit:
        raise PayloadTooLargeError(limit, length)


async def read_body(request: Request, limit: int) -> bytes:
    """Collect the body chunk by chunk, giving up as soon as it passes limit."""
    chunks = []
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if received > limit:
                raise PayloadTooLargeError(limit, received)
            chunks.append(chunk)
    except ClientDisconnect:
        raise ClientDisconnectedError()
    raw = b"".join(chunks)
    # later request.body() calls reuse these bytes instead of the spent stream
    request._body = raw
    return raw


def parse_body(raw: bytes, content_type: str | None) -> Any:
    kind = classify(content_type)
    if kind is BodyKind.JSON:
        return parse_json_body(raw, charset(content_type))
    if kind is BodyKind.FORM:
        return parse_urlencoded_body(raw, charset(content_type))
    return None


async def normalize_request(request: Request, limit: int) -> NormalizedRequest:
    """Read, bound and parse the body of one request."""
    check_declared_length(request.headers, limit)
    raw = await read_body(request, limit)
    content_type = request.headers.get("content-type")
    return NormalizedRequest(
        method=request.method,
        path=request.url.path,
        headers=request.headers,
        query=request.query_params,
        body=parse_body(raw, content_type),
        raw_body=raw,
        content_type=content_type,
        request=request,
    )
