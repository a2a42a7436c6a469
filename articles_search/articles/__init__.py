"""Article records."""

from articles_search.articles.models import ARTICLE_SCHEMA, Article

__all__ = [
    "ARTICLE_SCHEMA",
    "Article",
]
