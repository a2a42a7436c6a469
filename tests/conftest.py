"""Pytest configuration and shared fixtures."""

import copy
from collections.abc import AsyncGenerator, Sequence
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from articles_search.api.app import app
from articles_search.api.routes import get_repository
from articles_search.articles.models import ARTICLE_SCHEMA, Article
from articles_search.exceptions import NotFoundError
from articles_search.repository.gateway import Document, DocumentGateway
from articles_search.repository.query import SearchQuery
from articles_search.repository.repository import DocumentRepository


class InMemoryGateway(DocumentGateway):
    """Dict-backed gateway for tests.

    Search does not evaluate queries: it records them and returns
    ``search_reply``.
    """

    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}
        self.queries: list[SearchQuery] = []
        self.search_reply: Any = {"total_results": 0, "results": []}
        self.search_error: Exception | None = None
        self.closed = False

    async def list_keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self.documents if k.startswith(prefix))

    async def get(self, key: str) -> Document:
        if key not in self.documents:
            raise NotFoundError(key)
        return copy.deepcopy(self.documents[key])

    async def multi_get(self, keys: Sequence[str]) -> list[Document | None]:
        return [copy.deepcopy(self.documents.get(k)) for k in keys]

    async def exists(self, key: str) -> bool:
        return key in self.documents

    async def set(self, key: str, document: Document) -> None:
        self.documents[key] = copy.deepcopy(document)

    async def multi_set(self, items: Sequence[tuple[str, Document]]) -> None:
        for key, document in items:
            self.documents[key] = copy.deepcopy(document)

    async def delete(self, key: str) -> None:
        self.documents.pop(key, None)

    async def search(self, query: SearchQuery) -> Any:
        self.queries.append(query)
        if self.search_error is not None:
            raise self.search_error
        return self.search_reply

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def gateway() -> InMemoryGateway:
    """Empty in-memory document gateway."""
    return InMemoryGateway()


@pytest.fixture
def repository(gateway: InMemoryGateway) -> DocumentRepository[Article]:
    """Article repository over the in-memory gateway."""
    return DocumentRepository(
        gateway=gateway,
        model=Article,
        schema=ARTICLE_SCHEMA,
        key_prefix="article:",
        index_name="idx_articles",
    )


@pytest.fixture
async def client(
    gateway: InMemoryGateway,
    repository: DocumentRepository[Article],
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    The app is wired to the in-memory repository instead of Redis.

    Yields:
        AsyncClient configured for testing.
    """
    app.dependency_overrides[get_repository] = lambda: repository
    app.state.gateway = gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    app.state.gateway = None
