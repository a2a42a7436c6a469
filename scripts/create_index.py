#!/usr/bin/env python
"""Declare the article search index.

Usage:
    python -m scripts.create_index --drop

The index covers every document under the configured key prefix and is
derived from the article schema table, one indexed field per searchable
field.
"""

import argparse
import asyncio
import sys

from articles_search.articles.models import ARTICLE_SCHEMA
from articles_search.config import get_settings
from articles_search.exceptions import ArticlesSearchError
from articles_search.logging_config import get_logger, setup_logging
from articles_search.repository.gateway import RedisDocumentGateway
from articles_search.repository.schema import index_schema_args

logger = get_logger(__name__)


async def create_index(index: str, prefix: str, drop: bool) -> bool:
    """Create the index and return whether it succeeded.

    Args:
        index: Index name.
        prefix: Key prefix the index covers.
        drop: Drop an existing index of the same name first.

    Returns:
        True if the index was created, False otherwise.
    """
    setup_logging(level="INFO")
    settings = get_settings()

    schema_args = index_schema_args(ARTICLE_SCHEMA)
    logger.info(f"Declaring {index} over {prefix}*: {' '.join(schema_args)}")

    gateway = RedisDocumentGateway(settings.store)
    async with gateway:
        try:
            await gateway.connect()
            await gateway.create_index(index, prefix, schema_args, drop_existing=drop)
        except ArticlesSearchError as e:
            logger.error(f"Index creation failed: {e.message}", extra={"details": e.details})
            return False

    return True


def main() -> None:
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Create the article search index",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--index",
        default=settings.search.index_name,
        help="Index name",
    )
    parser.add_argument(
        "--prefix",
        default=settings.search.key_prefix,
        help="Key prefix covered by the index",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop an existing index with the same name first",
    )

    args = parser.parse_args()

    created = asyncio.run(create_index(index=args.index, prefix=args.prefix, drop=args.drop))

    sys.exit(0 if created else 1)


if __name__ == "__main__":
    main()
