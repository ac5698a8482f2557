"""Request building: query merge, validation and signed request descriptors."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import quote, unquote

from ncpsign.common.errors import ErrorCode, RequestValidationError
from ncpsign.common.logging import get_logger
from ncpsign.signer import HttpMethod, Signer

logger = get_logger(__name__)

QueryParams = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]

JSON_CONTENT_TYPE = "application/json"


@dataclass
class RequestSpec:
    """Parameters collected for one API call."""

    path: str
    method: HttpMethod | str = HttpMethod.GET
    query: list[tuple[str, str]] = field(default_factory=list)
    send_body: bool = False
    body_json: str | None = None


@dataclass(frozen=True)
class PreparedRequest:
    """A fully formed, signed request ready for the transport."""

    method: HttpMethod
    url: str
    path_with_query: str
    headers: dict[str, str]
    body: bytes | None = None


def validate_path(path: str) -> None:
    """
    Reject paths that cannot be sent verbatim as a request target.

    Raises:
        RequestValidationError: If the path is empty, relative, carries a
            fragment, or contains whitespace or non-ASCII characters
    """
    if not path:
        raise RequestValidationError("Path must not be empty", code=ErrorCode.INVALID_PATH)
    if not path.startswith("/"):
        raise RequestValidationError(
            f"Path must start with '/': {path!r}", code=ErrorCode.INVALID_PATH
        )
    if "#" in path:
        raise RequestValidationError(
            f"Path must not contain a fragment: {path!r}", code=ErrorCode.INVALID_PATH
        )
    if any(ch.isspace() or not ch.isascii() for ch in path):
        raise RequestValidationError(
            f"Path must be percent-encoded ASCII without whitespace: {path!r}",
            code=ErrorCode.INVALID_PATH,
        )


def _param_items(params: QueryParams | None) -> Iterable[tuple[str, Any]]:
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return params.items()
    return params


def _encode_pair(name: str, value: Any) -> str:
    text = "" if value is None else str(value)
    return f"{quote(name, safe='')}={quote(text, safe='')}"


def merge_query(path: str, params: QueryParams | None = None) -> str:
    """
    Merge explicit query parameters into a path that may carry its own query.

    Embedded pairs keep their order and raw text. An explicit entry replaces
    every embedded pair with the same name, taking the position of the first
    one. Explicit names not present in the path are appended in insertion
    order; a repeated explicit name keeps its first position and last value.
    Entries with an empty name are ignored.

    Args:
        path: Path, optionally followed by ``?query``
        params: Explicit parameters as a mapping or ``(name, value)`` pairs

    Returns:
        The request target to sign and send; no trailing ``?`` when the
        merged query is empty
    """
    base, _, embedded = path.partition("?")

    explicit: dict[str, Any] = {}
    for name, value in _param_items(params):
        if name:
            explicit[name] = value

    pairs: list[str] = []
    replaced: set[str] = set()
    for raw in embedded.split("&"):
        if not raw:
            continue
        name = unquote(raw.partition("=")[0])
        if name in explicit:
            if name not in replaced:
                pairs.append(_encode_pair(name, explicit[name]))
                replaced.add(name)
            continue
        pairs.append(raw)

    for name, value in explicit.items():
        if name not in replaced:
            pairs.append(_encode_pair(name, value))

    if not pairs:
        return base
    return f"{base}?{'&'.join(pairs)}"


def parse_query_entries(entries: Iterable[str]) -> list[tuple[str, str]]:
    """Parse ``name=value`` strings into query pairs."""
    pairs = []
    for entry in entries:
        name, sep, value = entry.partition("=")
        if not sep or not name:
            raise RequestValidationError(
                f"Query parameter must look like name=value: {entry!r}",
                code=ErrorCode.INVALID_QUERY,
            )
        pairs.append((name, value))
    return pairs


def parse_body(body_json: str | None) -> Any:
    """Parse a JSON body; blank text means an empty object."""
    if body_json is None or body_json.strip() == "":
        return {}
    try:
        return json.loads(body_json)
    except json.JSONDecodeError as e:
        raise RequestValidationError(
            f"Invalid JSON body: {e.msg} (line {e.lineno}, column {e.colno})",
            code=ErrorCode.INVALID_JSON,
        ) from e


def encode_body(data: Any) -> bytes:
    """Serialize a body to the exact bytes that will be sent."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def prepare_request(spec: RequestSpec, signer: Signer, base_url: str) -> PreparedRequest:
    """
    Validate, merge, sign and assemble a request.

    Validation runs before anything is signed.

    Args:
        spec: Collected request parameters
        signer: Signer holding the credentials and clock
        base_url: API Gateway base URL

    Returns:
        PreparedRequest whose ``path_with_query`` is both signed and sent
    """
    method = HttpMethod.parse(spec.method)
    validate_path(spec.path)

    body = encode_body(parse_body(spec.body_json)) if spec.send_body else None
    path_with_query = merge_query(spec.path, spec.query)

    headers = signer.sign(method, path_with_query).as_dict()
    if body is not None:
        headers["Content-Type"] = JSON_CONTENT_TYPE

    logger.debug(
        "Prepared signed request",
        method=method.value,
        path=path_with_query,
        has_body=body is not None,
    )

    return PreparedRequest(
        method=method,
        url=f"{base_url.rstrip('/')}{path_with_query}",
        path_with_query=path_with_query,
        headers=headers,
        body=body,
    )
