"""Tests for search reply decoding."""

import json
from typing import Any

import pytest

from articles_search.articles.models import Article
from articles_search.exceptions import MalformedReplyError
from articles_search.repository.decoder import (
    SearchEnvelope,
    decode_document,
    decode_envelope,
    decode_search_reply,
)


def _hit(key: str, article: dict[str, Any]) -> dict[str, Any]:
    """Build one RESP3 search hit holding ``article`` at the root path."""
    return {
        "id": key,
        "extra_attributes": {"$": json.dumps([article])},
        "values": [],
    }


def _reply(*hits: dict[str, Any], total: Any = None) -> dict[str, Any]:
    return {
        "attributes": [],
        "format": "STRING",
        "results": list(hits),
        "total_results": len(hits) if total is None else total,
        "warning": [],
    }


ARTICLE_ONE = {"id": 1, "title": "Go", "content": "", "author": "ann", "tags": ["go"]}
ARTICLE_TWO = {"id": 2, "title": "Rust", "content": "body", "author": "bob", "tags": []}


class TestDecodeSearchReply:
    """Tests for the full two-stage decode."""

    def test_decodes_hits_in_order(self) -> None:
        """Records follow the store's hit order."""
        reply = _reply(_hit("article:2", ARTICLE_TWO), _hit("article:1", ARTICLE_ONE))

        articles = decode_search_reply(reply, Article)

        assert [a.id for a in articles] == [2, 1]
        assert articles[1] == Article(**ARTICLE_ONE)

    def test_zero_total_is_empty(self) -> None:
        """No matches is a normal outcome, whatever the hits hold."""
        reply = _reply(total=0)
        reply["results"] = "garbage"

        assert decode_search_reply(reply, Article) == []

    def test_negative_total_is_empty(self) -> None:
        """A negative total is treated as no matches."""
        assert decode_search_reply(_reply(total=-1), Article) == []

    def test_bytes_reply(self) -> None:
        """Replies read without response decoding are accepted."""
        reply = {
            b"total_results": b"1",
            b"results": [
                {
                    b"id": b"article:1",
                    b"extra_attributes": {b"$": json.dumps([ARTICLE_ONE]).encode()},
                }
            ],
        }

        articles = decode_search_reply(reply, Article)

        assert articles == [Article(**ARTICLE_ONE)]

    def test_string_total(self) -> None:
        """A numeric string total resolves to an integer."""
        envelope = decode_envelope(_reply(_hit("article:1", ARTICLE_ONE), total="1"))
        assert envelope.total_hits == 1


class TestMalformedReplies:
    """Tests for shape violations."""

    @pytest.mark.parametrize("raw", [None, [], "reply", 3])
    def test_top_level_not_mapping(self, raw: Any) -> None:
        """The top level must be a mapping."""
        with pytest.raises(MalformedReplyError):
            decode_envelope(raw)

    @pytest.mark.parametrize("total", [None, "many", 1.5, True])
    def test_total_not_integer(self, total: Any) -> None:
        """total_results must resolve to an integer."""
        reply = _reply(_hit("article:1", ARTICLE_ONE))
        reply["total_results"] = total

        with pytest.raises(MalformedReplyError):
            decode_envelope(reply)

    @pytest.mark.parametrize("results", [None, "results", {"a": 1}])
    def test_results_not_sequence(self, results: Any) -> None:
        """results must be a sequence."""
        reply = _reply(total=1)
        reply["results"] = results

        with pytest.raises(MalformedReplyError) as exc_info:
            decode_envelope(reply)

        assert exc_info.value.fragment == results

    def test_hit_not_mapping(self) -> None:
        """Each hit must be a mapping."""
        reply = _reply(total=1)
        reply["results"] = ["article:1"]

        with pytest.raises(MalformedReplyError):
            decode_envelope(reply)

    def test_attributes_not_mapping(self) -> None:
        """A hit's attribute bag must be a mapping."""
        reply = _reply(total=1)
        reply["results"] = [{"id": "article:1", "extra_attributes": ["$", "{}"]}]

        with pytest.raises(MalformedReplyError):
            decode_envelope(reply)

    def test_missing_root_payload(self) -> None:
        """A hit without a root document is rejected."""
        reply = _reply(total=1)
        reply["results"] = [{"id": "article:1", "extra_attributes": {"title": "Go"}}]

        with pytest.raises(MalformedReplyError):
            decode_envelope(reply)


class TestDecodeDocument:
    """Tests for payload decoding."""

    def test_single_element_array(self) -> None:
        """The one array element becomes the record."""
        article = decode_document(json.dumps([ARTICLE_ONE]), Article)
        assert article.title == "Go"

    def test_invalid_json(self) -> None:
        """Unparseable payloads are rejected."""
        with pytest.raises(MalformedReplyError):
            decode_document("[{", Article)

    @pytest.mark.parametrize(
        "payload",
        [json.dumps(ARTICLE_ONE), json.dumps([]), json.dumps([ARTICLE_ONE, ARTICLE_TWO])],
    )
    def test_not_single_element_array(self, payload: str) -> None:
        """The payload must be an array holding exactly one record."""
        with pytest.raises(MalformedReplyError):
            decode_document(payload, Article)

    def test_shape_mismatch(self) -> None:
        """A record missing required fields is rejected."""
        with pytest.raises(MalformedReplyError) as exc_info:
            decode_document(json.dumps([{"id": 1}]), Article)

        assert "Article" in exc_info.value.message


class TestSearchEnvelope:
    """Tests for the generic envelope model."""

    def test_defaults(self) -> None:
        """Envelopes default to no hits."""
        assert SearchEnvelope(total_hits=0).hits == []
