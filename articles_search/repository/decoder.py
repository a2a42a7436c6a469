"""Decode RediSearch replies into typed records.

Decoding runs in two stages. The raw RESP3 reply is first narrowed into a
generic :class:`SearchEnvelope` (hit count plus, per hit, the document key
and its opaque JSON payload). The payloads are then validated into the
target model. Every shape check raises :class:`MalformedReplyError`.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from articles_search.exceptions import MalformedReplyError

T = TypeVar("T", bound=BaseModel)

ROOT_PATH = "$"


class SearchHit(BaseModel):
    """A single hit: the document key and its root JSON payload."""

    key: str = Field(description="Document key")
    payload: str = Field(description="JSON array holding the document")


class SearchEnvelope(BaseModel):
    """Generic search reply: total hit count and ordered hits."""

    total_hits: int = Field(description="Total matching documents")
    hits: list[SearchHit] = Field(default_factory=list, description="Returned hits")


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedReplyError("Reply contains non UTF-8 bytes", value) from e
    return value


def _mapping(value: Any, what: str) -> dict[Any, Any]:
    if not isinstance(value, Mapping):
        raise MalformedReplyError(f"{what} is not a mapping", value)
    return {_text(k): v for k, v in value.items()}


def _integer(value: Any, what: str) -> int:
    value = _text(value)
    if isinstance(value, bool):
        raise MalformedReplyError(f"{what} is not an integer", value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as e:
            raise MalformedReplyError(f"{what} is not an integer", value) from e
    raise MalformedReplyError(f"{what} is not an integer", value)


def decode_envelope(raw: Any) -> SearchEnvelope:
    """Narrow a raw ``FT.SEARCH`` reply into a SearchEnvelope.

    Raises:
        MalformedReplyError: If the reply does not have the expected shape.
    """
    top = _mapping(raw, "Search reply")
    total = _integer(top.get("total_results"), "total_results")
    if total <= 0:
        return SearchEnvelope(total_hits=total)

    results = top.get("results")
    if isinstance(results, (str, bytes)) or not isinstance(results, Sequence):
        raise MalformedReplyError("results is not a sequence", results)

    hits: list[SearchHit] = []
    for item in results:
        hit = _mapping(item, "Search hit")
        attributes = _mapping(hit.get("extra_attributes"), "Hit attributes")
        payload = _text(attributes.get(ROOT_PATH))
        if not isinstance(payload, str):
            raise MalformedReplyError("Hit has no JSON document at root path", attributes)
        hits.append(SearchHit(key=str(_text(hit.get("id", ""))), payload=payload))

    return SearchEnvelope(total_hits=total, hits=hits)


def decode_document(payload: str, model: type[T]) -> T:
    """Decode one root-path payload into ``model``.

    JSON path reads at ``$`` return an array of matches; the array must hold
    exactly one document.

    Raises:
        MalformedReplyError: If the payload is not a single valid record.
    """
    try:
        matches = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedReplyError(f"Payload is not valid JSON: {e}", payload) from e

    if not isinstance(matches, list) or len(matches) != 1:
        raise MalformedReplyError("Payload is not a single-element array", payload)

    try:
        return model.model_validate(matches[0])
    except PydanticValidationError as e:
        raise MalformedReplyError(
            f"Payload does not match {model.__name__}: {e.error_count()} errors",
            payload,
        ) from e


def decode_search_reply(raw: Any, model: type[T]) -> list[T]:
    """Decode a raw search reply into records, in store hit order."""
    envelope = decode_envelope(raw)
    return [decode_document(hit.payload, model) for hit in envelope.hits]
