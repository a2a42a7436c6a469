"""Searchable field schema for stored record types.

Record types declare their externally addressable fields once, as a static
table of ``(name, kind)`` pairs. The table drives both parameter validation
and filter classification, and the index declaration tooling.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class FieldKind(str, Enum):
    """Value kind of a searchable field."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SET = "set"
    OBJECT = "object"


@dataclass(frozen=True)
class FieldSpec:
    """One searchable field: its external name and value kind."""

    name: str
    kind: FieldKind


@dataclass(frozen=True)
class RecordSchema:
    """Ordered set of visible field names with a name to kind lookup.

    Names are lower-cased on construction so lookups are stable regardless
    of client casing. An empty schema accepts no parameter at all.
    """

    fields: tuple[FieldSpec, ...] = ()
    _kinds: dict[str, FieldKind] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        normalized = tuple(FieldSpec(f.name.lower(), f.kind) for f in self.fields)
        names = [f.name for f in normalized]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field names in schema: {names}")
        object.__setattr__(self, "fields", normalized)
        self._kinds.update((f.name, f.kind) for f in normalized)

    @classmethod
    def declare(cls, *entries: tuple[str, FieldKind]) -> "RecordSchema":
        """Build a schema from ``(name, kind)`` pairs."""
        return cls(tuple(FieldSpec(name, kind) for name, kind in entries))

    @property
    def names(self) -> tuple[str, ...]:
        """Visible field names, in declaration order."""
        return tuple(f.name for f in self.fields)

    def kind_of(self, name: str) -> FieldKind | None:
        """Return the kind of ``name`` or None if it is not searchable."""
        return self._kinds.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._kinds

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


# Index field type per kind; objects are not indexable.
_INDEX_TYPES = {
    FieldKind.TEXT: "TEXT",
    FieldKind.NUMBER: "NUMERIC",
    FieldKind.BOOLEAN: "TAG",
    FieldKind.SET: "TAG",
}


def index_schema_args(schema: RecordSchema) -> list[str]:
    """Render the ``SCHEMA`` clause of ``FT.CREATE ... ON JSON``.

    Each field is indexed from the top-level JSON path of the same name;
    set fields index every array element.

    Raises:
        ValueError: If the schema contains an object-valued field.
    """
    args: list[str] = []
    for spec in schema:
        index_type = _INDEX_TYPES.get(spec.kind)
        if index_type is None:
            raise ValueError(f"Field {spec.name} of kind {spec.kind.value} cannot be indexed")
        path = f"$.{spec.name}[*]" if spec.kind == FieldKind.SET else f"$.{spec.name}"
        args.extend([path, "AS", spec.name, index_type])
    return args
