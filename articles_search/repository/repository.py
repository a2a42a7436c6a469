"""Document repository: typed records over a JSON document store.

Records are stored whole at the root path of ``<key_prefix><id>``. Creates
and deletes are guarded by an explicit existence check; the check and the
write are separate store calls, so concurrent writers race.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from articles_search.exceptions import ConflictError, MalformedReplyError, NotFoundError
from articles_search.logging_config import get_logger
from articles_search.observability.metrics import track_search_results
from articles_search.repository.decoder import decode_search_reply
from articles_search.repository.filters import build_filter_specs
from articles_search.repository.gateway import Document, DocumentGateway
from articles_search.repository.query import compile_query
from articles_search.repository.schema import RecordSchema

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class DocumentRepository(Generic[T]):
    """CRUD and search for one record type.

    The record model must declare an integer ``id`` field that may be None
    on create.
    """

    def __init__(
        self,
        gateway: DocumentGateway,
        model: type[T],
        schema: RecordSchema,
        key_prefix: str,
        index_name: str,
        search_limit: int = 10,
    ) -> None:
        """Initialize the repository.

        Args:
            gateway: Store access.
            model: Record model class.
            schema: Searchable fields of the record.
            key_prefix: Prefix forming document keys.
            index_name: Search index covering ``key_prefix``.
            search_limit: Maximum records returned by one search.
        """
        self._gateway = gateway
        self._model = model
        self._schema = schema
        self._key_prefix = key_prefix
        self._index_name = index_name
        self._search_limit = search_limit

    @property
    def schema(self) -> RecordSchema:
        """Searchable fields of the record type."""
        return self._schema

    def key_for(self, record_id: int | str) -> str:
        """Build the document key of a record id."""
        return f"{self._key_prefix}{record_id}"

    def _to_record(self, document: Document, key: str) -> T:
        try:
            return self._model.model_validate(document)
        except PydanticValidationError as e:
            raise MalformedReplyError(
                f"Stored document at {key} does not match {self._model.__name__}",
                document,
            ) from e

    async def list_all(self) -> list[T]:
        """Return every stored record, found by key scan.

        Keys that vanish between the scan and the fetch are skipped.
        """
        keys = await self._gateway.list_keys(self._key_prefix)
        if not keys:
            return []

        documents = await self._gateway.multi_get(keys)
        return [
            self._to_record(document, key)
            for key, document in zip(keys, documents)
            if document is not None
        ]

    async def get(self, record_id: int | str) -> T:
        """Fetch one record.

        Raises:
            NotFoundError: If the record does not exist.
        """
        key = self.key_for(record_id)
        return self._to_record(await self._gateway.get(key), key)

    async def create_many(self, records: Sequence[T]) -> list[T]:
        """Store new records in one batch.

        Records without an id get consecutive ids after the highest stored
        one, skipping ids used explicitly in the same batch.

        Raises:
            ConflictError: If an id repeats within the batch or is already
                stored. Nothing is written in that case.
            TransportError: If the store fails; none of the batch may be
                treated as durable.
        """
        if not records:
            return []

        explicit = {r.id for r in records if r.id is not None}
        next_id: int | None = None
        if any(r.id is None for r in records):
            next_id = await self._gateway.allocate_next_id(self._key_prefix)

        prepared: list[T] = []
        seen: set[int] = set()
        for record in records:
            if record.id is None:
                while next_id in explicit:
                    next_id += 1
                record = record.model_copy(update={"id": next_id})
                next_id += 1

            key = self.key_for(record.id)
            if record.id in seen:
                raise ConflictError(key, {"reason": "duplicate id in batch"})
            seen.add(record.id)

            if await self._gateway.exists(key):
                raise ConflictError(key)
            prepared.append(record)

        await self._gateway.multi_set(
            [(self.key_for(r.id), r.model_dump(mode="json")) for r in prepared]
        )
        logger.info(
            f"Created {len(prepared)} records",
            extra={"ids": [r.id for r in prepared]},
        )
        return prepared

    async def create(self, record: T) -> T:
        """Store a single new record."""
        return (await self.create_many([record]))[0]

    async def update(self, record_id: int, record: T) -> T:
        """Replace a stored record; the path id wins over the body id.

        Raises:
            NotFoundError: If the record does not exist.
        """
        record = record.model_copy(update={"id": record_id})
        key = self.key_for(record_id)
        if not await self._gateway.exists(key):
            raise NotFoundError(key)

        await self._gateway.set(key, record.model_dump(mode="json"))
        logger.info(f"Updated record {record_id}")
        return record

    async def delete(self, record_id: int | str) -> None:
        """Delete a stored record.

        Raises:
            NotFoundError: If the record does not exist.
        """
        key = self.key_for(record_id)
        if not await self._gateway.exists(key):
            raise NotFoundError(key)

        await self._gateway.delete(key)
        logger.info(f"Deleted record {record_id}")

    async def search(self, params: Mapping[str, str | Iterable[str]]) -> list[T]:
        """Search records matching every supplied field filter.

        Raises:
            EmptyQueryError: If no filter is given.
            UnknownParameterError: If a filter names an unsearchable field.
            MalformedReplyError: If the store reply cannot be decoded.
        """
        filters = build_filter_specs(params, self._schema)
        query = compile_query(filters, self._index_name, limit=self._search_limit)

        logger.debug(f"Searching {self._index_name}", extra={"query": query.query})
        reply = await self._gateway.search(query)
        records = decode_search_reply(reply, self._model)

        track_search_results(len(records))
        return records
