"""Translate HTTP method, path, query string and body into a ParsedRequest."""

import json
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from common.errors import BadRequestError, NotFoundError
from crud.models import FilterCondition, FilterOperator, Intent, ParsedRequest, SortSpec

SORT_PARAM = "_sort"
LIMIT_PARAM = "_limit"
OFFSET_PARAM = "_offset"

_FILTER_KEY_RE = re.compile(r"^(?P<field>[^\[\]]+)(?:\[(?P<op>[^\[\]]*)\])?$")


def translate_request(
    method: str,
    path: str,
    query_params: Iterable[Tuple[str, str]] = (),
    body: Optional[bytes] = None,
) -> ParsedRequest:
    """Build a ParsedRequest, raising BadRequestError or NotFoundError."""
    table_name, record_id = _split_path(path)
    intent = _resolve_intent(method, record_id)
    params = list(query_params or ())

    if params and intent != Intent.LIST:
        raise BadRequestError(
            "Query parameters are only supported when listing a collection",
            details={"intent": intent.value},
        )

    filters: List[FilterCondition] = []
    sort: List[SortSpec] = []
    limit: Optional[int] = None
    offset: Optional[int] = None
    for key, value in params:
        if key == SORT_PARAM:
            sort.extend(_parse_sort(value))
        elif key == LIMIT_PARAM:
            if limit is not None:
                raise BadRequestError(f"'{LIMIT_PARAM}' given more than once")
            limit = _parse_non_negative(key, value)
        elif key == OFFSET_PARAM:
            if offset is not None:
                raise BadRequestError(f"'{OFFSET_PARAM}' given more than once")
            offset = _parse_non_negative(key, value)
        elif key.startswith("_"):
            raise BadRequestError(f"Unknown reserved parameter '{key}'")
        else:
            filters.append(_parse_filter(key, value))

    rows: Optional[Tuple[Dict[str, Any], ...]] = None
    is_bulk = False
    if intent == Intent.CREATE:
        payload = _parse_body(body)
        if isinstance(payload, dict):
            rows = (payload,)
        elif isinstance(payload, list) and payload:
            if not all(isinstance(item, dict) for item in payload):
                raise BadRequestError("Every element of a bulk create must be a JSON object")
            rows = tuple(payload)
            is_bulk = True
        else:
            raise BadRequestError(
                "Create body must be a JSON object or a non-empty array of objects"
            )
    elif intent == Intent.UPDATE:
        payload = _parse_body(body)
        if not isinstance(payload, dict):
            raise BadRequestError("Update body must be a JSON object")
        rows = (payload,)

    return ParsedRequest(
        intent=intent,
        table_name=table_name,
        record_id=record_id,
        filters=tuple(filters),
        sort=tuple(sort),
        limit=limit,
        offset=offset or 0,
        rows=rows,
        is_bulk=is_bulk,
    )


def _split_path(path: str) -> Tuple[str, Optional[str]]:
    segments = (path or "").strip("/").split("/")
    if not segments or not segments[0]:
        raise NotFoundError("No table in request path")
    if len(segments) > 2:
        raise NotFoundError(f"Path '{path}' does not match /{{table}} or /{{table}}/{{id}}")
    if len(segments) == 2:
        if not segments[1]:
            raise NotFoundError(f"Empty id in path '{path}'")
        return segments[0], segments[1]
    return segments[0], None


def _resolve_intent(method: str, record_id: Optional[str]) -> Intent:
    method = (method or "").upper()
    if method == "GET":
        return Intent.GET if record_id is not None else Intent.LIST
    if method == "POST" and record_id is None:
        return Intent.CREATE
    if method in ("PUT", "PATCH") and record_id is not None:
        return Intent.UPDATE
    if method == "DELETE" and record_id is not None:
        return Intent.DELETE
    target = "item" if record_id is not None else "collection"
    raise BadRequestError(f"Method {method} is not supported on a {target}")


def _parse_sort(value: str) -> List[SortSpec]:
    specs = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        descending = part.startswith("-")
        field = part[1:].strip() if descending else part
        if not field:
            raise BadRequestError(f"Invalid sort expression '{value}'")
        specs.append(SortSpec(field=field, descending=descending))
    if not specs:
        raise BadRequestError(f"Invalid sort expression '{value}'")
    return specs


def _parse_non_negative(key: str, value: str) -> int:
    try:
        number = int(value.strip())
    except ValueError:
        raise BadRequestError(f"'{key}' must be a non-negative integer") from None
    if number < 0:
        raise BadRequestError(f"'{key}' must be a non-negative integer")
    return number


def _parse_filter(key: str, value: str) -> FilterCondition:
    match = _FILTER_KEY_RE.match(key)
    if not match:
        raise BadRequestError(f"Malformed filter parameter '{key}'")
    field = match.group("field").strip()
    op_name = match.group("op")
    if not field:
        raise BadRequestError(f"Malformed filter parameter '{key}'")
    try:
        operator = FilterOperator((op_name or "eq").strip().lower())
    except ValueError:
        raise BadRequestError(f"Unknown filter operator '{op_name}' on '{field}'") from None

    if operator == FilterOperator.IN:
        values = [item for item in value.split(",") if item != ""]
        if not values:
            raise BadRequestError(f"'in' filter on '{field}' needs at least one value")
        return FilterCondition(field=field, operator=operator, value=values)
    return FilterCondition(field=field, operator=operator, value=value)


def _reject_constant(name: str) -> Any:
    raise BadRequestError(f"Invalid JSON number '{name}'")


def _parse_body(body: Optional[bytes]) -> Any:
    if body is None or not body.strip():
        raise BadRequestError("Request body is required")
    try:
        text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
        return json.loads(text, parse_float=Decimal, parse_constant=_reject_constant)
    except UnicodeDecodeError:
        raise BadRequestError("Request body must be UTF-8 encoded JSON") from None
    except ValueError as exc:
        raise BadRequestError(f"Malformed JSON body: {exc}") from None
