"""Article data models."""

from pydantic import BaseModel, Field

from articles_search.repository.schema import FieldKind, RecordSchema


class Article(BaseModel):
    """An article stored as one JSON document.

    Attributes:
        id: Unique identifier; allocated by the server when omitted.
        title: Article title.
        content: Article body.
        author: Author name.
        tags: Tags attached to the article.
    """

    id: int | None = Field(default=None, ge=1, description="Unique article identifier")
    title: str = Field(min_length=1, description="Article title")
    content: str = Field(default="", description="Article body")
    author: str = Field(default="", description="Author name")
    tags: list[str] = Field(default_factory=list, description="Article tags")


# Fields accepted by /articles/search. The id is addressed through
# /article/{id}, not the search index.
ARTICLE_SCHEMA = RecordSchema.declare(
    ("title", FieldKind.TEXT),
    ("content", FieldKind.TEXT),
    ("author", FieldKind.TEXT),
    ("tags", FieldKind.SET),
)
