"""Normalise webhook payloads to a single match identifier.

Different integrations put the id of the edited page in different places.
Each recognised layout is listed in ``PAYLOAD_SHAPES`` in priority order; the
first one that yields a non-empty string wins.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .validation import ValidationError

logger = logging.getLogger(__name__)

PAYLOAD_SHAPES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("direct", ("page_id",)),
    ("entity", ("entity", "id")),
    ("data", ("data", "id")),
    ("data_entity", ("data", "entity", "id")),
    ("page", ("page", "id")),
)

QUERY_PARAMS = ("page_id", "match_id")


@dataclass(frozen=True)
class MatchReference:
    match_id: str
    shape: str


def decode_body(raw: bytes | str | None) -> dict[str, Any]:
    """Decode a request body into a JSON object.

    Bodies may arrive double-encoded (a JSON string holding JSON). Anything
    that does not decode to an object is treated as an empty payload.
    """

    if raw is None:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    body: Any = raw
    for _ in range(2):
        if not isinstance(body, str):
            break
        if not body.strip():
            return {}
        try:
            body = json.loads(body)
        except ValueError:
            return {}
    return body if isinstance(body, dict) else {}


def _lookup(payload: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = payload
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def parse_payload(payload: Mapping[str, Any]) -> MatchReference:
    for shape, path in PAYLOAD_SHAPES:
        value = _lookup(payload, path)
        if isinstance(value, str) and value.strip():
            return MatchReference(match_id=value.strip(), shape=shape)
    logger.error("Could not determine page_id from payload: %s", json.dumps(payload, default=str))
    raise ValidationError("Missing page_id in payload")


def parse_query(params: Mapping[str, str]) -> MatchReference:
    for name in QUERY_PARAMS:
        value = params.get(name)
        if value and value.strip():
            return MatchReference(match_id=value.strip(), shape=f"query:{name}")
    raise ValidationError("Missing page_id in query string")
