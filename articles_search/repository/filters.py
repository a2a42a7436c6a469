"""Turn raw query parameters into typed search filters."""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from articles_search.exceptions import EmptyQueryError, UnknownParameterError
from articles_search.repository.schema import FieldKind, RecordSchema


class FilterSpec(BaseModel):
    """A single field filter resolved against a record schema.

    Attributes:
        name: Lower-cased field name.
        kind: Value kind resolved from the schema.
        values: Raw values as supplied by the client.
    """

    name: str = Field(description="Lower-cased field name")
    kind: FieldKind = Field(description="Value kind of the field")
    values: list[str] = Field(description="Raw filter values")


def build_filter_specs(
    params: Mapping[str, str | Iterable[str]],
    schema: RecordSchema,
) -> list[FilterSpec]:
    """Map raw ``name -> values`` input onto the schema.

    Args:
        params: Query parameters; each value is a string or a sequence of
            strings. Names are compared case-insensitively.
        schema: Searchable fields of the target record type.

    Returns:
        One FilterSpec per distinct parameter name, in input order.

    Raises:
        EmptyQueryError: If no parameter is supplied.
        UnknownParameterError: If a parameter is not in the schema.
    """
    if not params:
        raise EmptyQueryError(schema.names)

    specs: dict[str, FilterSpec] = {}
    for raw_name, raw_values in params.items():
        name = raw_name.lower()
        kind = schema.kind_of(name)
        if kind is None:
            raise UnknownParameterError(raw_name, schema.names)

        values = [raw_values] if isinstance(raw_values, str) else list(raw_values)
        if name in specs:
            # ?Tags=a&tags=b collapse onto one filter
            specs[name].values.extend(values)
        else:
            specs[name] = FilterSpec(name=name, kind=kind, values=values)

    return list(specs.values())
