"""Generic document repository over a JSON store with a search index."""

from articles_search.repository.decoder import SearchEnvelope, SearchHit, decode_search_reply
from articles_search.repository.filters import FilterSpec, build_filter_specs
from articles_search.repository.gateway import DocumentGateway, RedisDocumentGateway
from articles_search.repository.query import SearchQuery, compile_query, parse_query
from articles_search.repository.repository import DocumentRepository
from articles_search.repository.schema import FieldKind, FieldSpec, RecordSchema

__all__ = [
    "DocumentGateway",
    "DocumentRepository",
    "FieldKind",
    "FieldSpec",
    "FilterSpec",
    "RecordSchema",
    "RedisDocumentGateway",
    "SearchEnvelope",
    "SearchHit",
    "SearchQuery",
    "build_filter_specs",
    "compile_query",
    "decode_search_reply",
    "parse_query",
]
