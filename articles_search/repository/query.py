"""Compile filter specs into RediSearch queries.

Set-valued fields use the tag syntax ``@field:{v1 v2}``; every other kind is
embedded as a plain term ``@field:v1 v2``. Filters are joined by a space,
which RediSearch treats as an implicit AND.
"""

import re
from collections.abc import Sequence

from pydantic import BaseModel, Field

from articles_search.repository.filters import FilterSpec
from articles_search.repository.schema import FieldKind, RecordSchema

# Dialect 3 parses tag braces unambiguously and returns JSON documents
# as arrays under "$".
SEARCH_DIALECT = 3

_TERM_PATTERN = re.compile(r"@(?P<name>[\w.]+):(?:\{(?P<tags>[^}]*)\}|(?P<terms>[^@]*))")


class SearchQuery(BaseModel):
    """A compiled search ready to be sent to the store.

    Attributes:
        index: Search index name.
        query: Query string in RediSearch syntax.
        dialect: Query dialect requested from the store.
        limit: Maximum number of hits returned.
    """

    index: str = Field(description="Search index name")
    query: str = Field(description="RediSearch query string")
    dialect: int = Field(default=SEARCH_DIALECT, description="Query dialect")
    limit: int = Field(default=10, ge=0, description="Maximum hits returned")

    def to_args(self) -> list[str]:
        """Render the ``FT.SEARCH`` command arguments."""
        return [
            "FT.SEARCH",
            self.index,
            self.query,
            "LIMIT",
            "0",
            str(self.limit),
            "DIALECT",
            str(self.dialect),
        ]


def compile_filter(spec: FilterSpec) -> str:
    """Render a single filter as a query term."""
    joined = " ".join(spec.values)
    if spec.kind == FieldKind.SET:
        return f"@{spec.name}:{{{joined}}}"
    return f"@{spec.name}:{joined}"


def compile_query(
    filters: Sequence[FilterSpec],
    index: str,
    limit: int = 10,
) -> SearchQuery:
    """Compile filters into a query against ``index``.

    Args:
        filters: Non-empty sequence of filters, ANDed together.
        index: Search index name.
        limit: Maximum number of hits to request.

    Returns:
        The compiled SearchQuery.
    """
    query = " ".join(compile_filter(spec) for spec in filters)
    return SearchQuery(index=index, query=query, limit=limit)


def parse_query(query: str, schema: RecordSchema) -> list[tuple[str, FieldKind, list[str]]]:
    """Recover ``(field, kind, values)`` triples from a compiled query.

    Only queries produced by :func:`compile_query` from values without
    whitespace, braces or ``@`` are guaranteed to parse back.

    Raises:
        ValueError: If a term names an unknown field or uses tag syntax on a
            field that is not set-valued.
    """
    triples: list[tuple[str, FieldKind, list[str]]] = []
    for match in _TERM_PATTERN.finditer(query):
        name = match.group("name")
        kind = schema.kind_of(name)
        if kind is None:
            raise ValueError(f"Unknown field in query: {name}")

        tagged = match.group("tags") is not None
        if tagged != (kind == FieldKind.SET):
            raise ValueError(f"Field {name} rendered with the wrong syntax for {kind.value}")

        raw = match.group("tags") if tagged else match.group("terms")
        triples.append((name, kind, raw.split()))
    return triples
