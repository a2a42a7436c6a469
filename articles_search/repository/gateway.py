"""Document gateway interface and Redis implementation.

The gateway is the only code that talks to the store. It offers existence
checks, single and batch reads, batch writes, deletes, key scans and raw
search execution. None of these are combined into atomic check-and-set
operations: an existence check followed by a write can race with another
writer, and callers must treat that as last-writer-wins.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Sequence
from types import TracebackType
from typing import Any, TypeVar

from redis import exceptions as redis_exceptions
from redis.asyncio import Redis

from articles_search.config import StoreSettings, get_settings
from articles_search.exceptions import (
    ErrorCode,
    NotFoundError,
    QueryRejectedError,
    TransportError,
)
from articles_search.logging_config import get_logger
from articles_search.observability.metrics import track_store_operation
from articles_search.repository.query import SearchQuery

logger = get_logger(__name__)

R = TypeVar("R")

Document = dict[str, Any]

ROOT_PATH = "$"


class DocumentGateway(ABC):
    """Abstract base class for document stores.

    Defines the narrow get/set/delete/query interface the repository uses.
    """

    @abstractmethod
    async def list_keys(self, prefix: str) -> list[str]:
        """List every key starting with ``prefix``.

        Returns:
            Matching keys; empty when nothing matches.

        Raises:
            TransportError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> Document:
        """Fetch the document stored at ``key``.

        Raises:
            NotFoundError: If no document exists at the key.
            TransportError: If the store cannot be reached.
        """
        ...

    @abstractmethod
    async def multi_get(self, keys: Sequence[str]) -> list[Document | None]:
        """Fetch many documents at once.

        Returns:
            One entry per key, in input order; None where a key is absent.
        """
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return whether a document exists at ``key``."""
        ...

    @abstractmethod
    async def set(self, key: str, document: Document) -> None:
        """Replace the whole document stored at ``key``."""
        ...

    @abstractmethod
    async def multi_set(self, items: Sequence[tuple[str, Document]]) -> None:
        """Write many documents in one call.

        A failure means none of the batch may be treated as durable.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the document at ``key``."""
        ...

    @abstractmethod
    async def search(self, query: SearchQuery) -> Any:
        """Run a compiled search and return the raw store reply."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Return whether the store answers."""
        ...

    async def close(self) -> None:
        """Release resources held by the gateway."""
        return None

    async def allocate_next_id(self, prefix: str) -> int:
        """Return one more than the highest numeric id under ``prefix``.

        Keys whose suffix is not a non-negative integer are ignored. Returns
        1 when no numeric key exists. Two concurrent callers can observe the
        same maximum and receive the same id.
        """
        highest = 0
        for key in await self.list_keys(prefix):
            suffix = key[len(prefix):]
            if suffix.isascii() and suffix.isdecimal():
                highest = max(highest, int(suffix))
        return highest + 1

    async def __aenter__(self) -> "DocumentGateway":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


class RedisDocumentGateway(DocumentGateway):
    """Redis JSON + RediSearch gateway.

    Holds one long-lived client (a connection pool) shared by all requests.
    Every call is bounded by the configured timeout.
    """

    def __init__(
        self,
        settings: StoreSettings | None = None,
        client: Redis | None = None,
    ) -> None:
        """Initialize the Redis gateway.

        Args:
            settings: Store configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().store
        self._client = client
        self._owns_client = client is None
        self._timeout = self._settings.timeout
        self._scan_count = self._settings.scan_count
        self._batch_size = self._settings.batch_size

    def _get_client(self) -> Redis:
        """Get or create the Redis client."""
        if self._client is None:
            password = None
            if self._settings.password:
                password = self._settings.password.get_secret_value()

            # RESP3 so search replies arrive as maps rather than flat arrays
            self._client = Redis(
                host=self._settings.server,
                port=self._settings.port,
                password=password,
                db=self._settings.index,
                protocol=3,
                decode_responses=True,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
            )
        return self._client

    async def _call(self, operation: str, awaitable: Awaitable[R]) -> R:
        """Await a store call under the timeout, mapping failures."""
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(awaitable, timeout=self._timeout)
        except (asyncio.TimeoutError, redis_exceptions.TimeoutError) as e:
            track_store_operation(operation, time.perf_counter() - start, success=False)
            raise TransportError(
                f"Store {operation} timed out after {self._timeout}s",
                code=ErrorCode.STORE_TIMEOUT,
                details={"operation": operation, "timeout": self._timeout},
            ) from e
        except redis_exceptions.ResponseError as e:
            track_store_operation(operation, time.perf_counter() - start, success=False)
            raise TransportError(
                f"Store {operation} rejected: {e}",
                code=ErrorCode.STORE_REJECTED,
                details={"operation": operation, "error": str(e)},
            ) from e
        except redis_exceptions.RedisError as e:
            track_store_operation(operation, time.perf_counter() - start, success=False)
            raise TransportError(
                f"Store {operation} failed: {e}",
                details={"operation": operation, "error": str(e)},
            ) from e

        track_store_operation(operation, time.perf_counter() - start, success=True)
        return result

    async def connect(self) -> None:
        """Open the connection and verify the store answers.

        Raises:
            TransportError: If the store cannot be reached.
        """
        await self._call("ping", self._get_client().ping())
        logger.info(
            f"Connected to Redis at {self._settings.server}:{self._settings.port}",
            extra={"db": self._settings.index},
        )

    async def close(self) -> None:
        """Close the Redis client if this gateway created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Closed Redis connection")

    async def list_keys(self, prefix: str) -> list[str]:
        """Scan keys under ``prefix`` with a cursor, never ``KEYS``.

        Each SCAN page is a separate call with its own timeout. SCAN may
        return a key more than once; duplicates are dropped.
        """
        client = self._get_client()
        keys: dict[str, None] = {}
        cursor = 0
        while True:
            cursor, page = await self._call(
                "scan",
                client.scan(cursor, match=f"{prefix}*", count=self._scan_count),
            )
            keys.update(dict.fromkeys(page))
            if int(cursor) == 0:
                return list(keys)

    async def get(self, key: str) -> Document:
        """Fetch the root document at ``key``."""
        client = self._get_client()
        document = await self._call("get", client.json().get(key))
        if document is None:
            raise NotFoundError(key)
        return document

    async def multi_get(self, keys: Sequence[str]) -> list[Document | None]:
        """Fetch many root documents with ``JSON.MGET``.

        Keys are sent in batches of at most ``batch_size``, one timed call
        per batch.
        """
        if not keys:
            return []

        client = self._get_client()
        documents: list[Document | None] = []
        for start in range(0, len(keys), self._batch_size):
            batch = list(keys[start:start + self._batch_size])
            replies = await self._call("mget", client.json().mget(batch, ROOT_PATH))
            for reply in replies:
                # "$" reads come back as a list of matches
                if isinstance(reply, list):
                    documents.append(reply[0] if reply else None)
                else:
                    documents.append(reply)
        return documents

    async def exists(self, key: str) -> bool:
        """Check key existence."""
        client = self._get_client()
        return bool(await self._call("exists", client.exists(key)))

    async def set(self, key: str, document: Document) -> None:
        """Replace the document at ``key``."""
        client = self._get_client()
        await self._call("set", client.json().set(key, ROOT_PATH, document))

    async def multi_set(self, items: Sequence[tuple[str, Document]]) -> None:
        """Write all documents with a single ``JSON.MSET``."""
        if not items:
            return

        client = self._get_client()
        triplets = [(key, ROOT_PATH, document) for key, document in items]
        await self._call("mset", client.json().mset(triplets))

        logger.debug(f"Stored {len(triplets)} documents")

    async def delete(self, key: str) -> None:
        """Delete ``key``."""
        client = self._get_client()
        await self._call("delete", client.delete(key))

    async def search(self, query: SearchQuery) -> Any:
        """Run ``FT.SEARCH`` and return the raw RESP3 reply.

        Raises:
            QueryRejectedError: If the store cannot parse the query string.
            TransportError: If the store fails or rejects the command for
                another reason, such as a missing index.
        """
        client = self._get_client()
        try:
            return await self._call("search", client.execute_command(*query.to_args()))
        except TransportError as e:
            reason = e.details.get("error", "")
            if e.code == ErrorCode.STORE_REJECTED and "syntax error" in reason.lower():
                raise QueryRejectedError(query.query, reason) from e
            raise

    async def ping(self) -> bool:
        """Ping the store."""
        client = self._get_client()
        return bool(await self._call("ping", client.ping()))

    async def create_index(
        self,
        index: str,
        prefix: str,
        schema_args: Sequence[str],
        drop_existing: bool = False,
    ) -> None:
        """Declare a JSON search index over documents under ``prefix``.

        Args:
            index: Index name.
            prefix: Key prefix the index covers.
            schema_args: ``SCHEMA`` clause arguments.
            drop_existing: Drop an existing index of the same name first.
        """
        client = self._get_client()
        if drop_existing:
            try:
                await self._call("dropindex", client.execute_command("FT.DROPINDEX", index))
            except TransportError:
                logger.info(f"No existing index {index} to drop")

        await self._call(
            "createindex",
            client.execute_command(
                "FT.CREATE", index, "ON", "JSON", "PREFIX", "1", prefix, "SCHEMA", *schema_args
            ),
        )
        logger.info(f"Created search index {index}", extra={"prefix": prefix})
