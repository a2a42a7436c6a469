"""API routes for article CRUD and search."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Request, status
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from articles_search.articles.models import Article
from articles_search.exceptions import ConfigurationError, ValidationError
from articles_search.logging_config import get_logger
from articles_search.repository.repository import DocumentRepository

logger = get_logger(__name__)


router = APIRouter(tags=["Articles"])

ArticleId = Annotated[int, Path(ge=1, description="Article identifier")]


class MessageResponse(BaseModel):
    """Plain acknowledgement message."""

    message: str = Field(description="Outcome message")


def get_repository(request: Request) -> DocumentRepository[Article]:
    """Return the article repository opened at startup."""
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise ConfigurationError("Article repository is not initialized")
    return repository


Repository = Annotated[DocumentRepository[Article], Depends(get_repository)]


def parse_articles(payload: Any) -> list[Article]:
    """Accept either one article object or an array of them.

    Raises:
        ValidationError: If the payload is neither, or an article is invalid.
    """
    if isinstance(payload, dict):
        items = [payload]
    elif isinstance(payload, list):
        items = payload
    else:
        raise ValidationError(
            "The provided JSON is neither a list of articles nor an article",
            details={"type": type(payload).__name__},
        )

    articles: list[Article] = []
    for position, item in enumerate(items):
        articles.append(_validate_article(item, position))
    return articles


def _validate_article(item: Any, position: int | None = None) -> Article:
    try:
        return Article.model_validate(item)
    except PydanticValidationError as e:
        details: dict[str, Any] = {
            "errors": e.errors(include_url=False, include_context=False, include_input=False)
        }
        if position is not None:
            details["position"] = position
        raise ValidationError("Validation failed for article", details=details) from e


async def _read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON payload", details={"error": str(e)}) from e


@router.get("/articles", response_model=list[Article])
async def list_articles(repository: Repository) -> list[Article]:
    """List every article."""
    return await repository.list_all()


@router.get("/articles/search", response_model=list[Article])
async def search_articles(request: Request, repository: Repository) -> list[Article]:
    """Search articles; every query parameter is a field filter.

    Repeated parameters contribute several values to the same filter.
    """
    params: dict[str, list[str]] = {}
    for name, value in request.query_params.multi_items():
        params.setdefault(name, []).append(value)
    return await repository.search(params)


@router.get("/article/{article_id}", response_model=Article)
async def get_article(article_id: ArticleId, repository: Repository) -> Article:
    """Fetch one article."""
    return await repository.get(article_id)


@router.post(
    "/articles",
    response_model=list[Article],
    status_code=status.HTTP_201_CREATED,
)
async def create_articles(request: Request, repository: Repository) -> list[Article]:
    """Create one article or a batch of articles.

    The whole batch is rejected if any id already exists.
    """
    articles = parse_articles(await _read_json(request))
    return await repository.create_many(articles)


@router.put("/article/{article_id}", response_model=Article)
async def update_article(
    article_id: ArticleId,
    request: Request,
    repository: Repository,
) -> Article:
    """Replace an article."""
    payload = await _read_json(request)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload", details={"type": type(payload).__name__})
    return await repository.update(article_id, _validate_article(payload))


@router.delete("/article/{article_id}", response_model=MessageResponse)
async def delete_article(article_id: ArticleId, repository: Repository) -> MessageResponse:
    """Delete an article."""
    await repository.delete(article_id)
    return MessageResponse(message=f"article with ID {article_id} successfully deleted")
