"""Mapping raw row values onto entity attributes, and rendering rows back."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from functools import cache
from typing import TYPE_CHECKING, Any

from pydantic import ConfigDict, TypeAdapter

from modelsync.core.types import FieldType

if TYPE_CHECKING:
    from modelsync.schema.registry import Entity

UnknownHandler = Callable[[str, Any], None]

RowValues = Mapping[str, Any] | Iterable[tuple[str, Any] | list[Any]]

_PYTHON_TYPES: dict[str, Any] = {
    FieldType.STRING: str,
    FieldType.TEXT: str,
    FieldType.INT: int,
    FieldType.FLOAT: float,
    FieldType.BOOL: bool,
    FieldType.DATETIME: datetime,
    FieldType.JSON: Any,
    FieldType.UUID: str,
}


@cache
def _adapter(field_type: str) -> TypeAdapter[Any]:
    python_type = _PYTHON_TYPES.get(field_type, Any)
    if python_type is str:
        return TypeAdapter(str, config=ConfigDict(coerce_numbers_to_str=True))
    return TypeAdapter(python_type)


def _pairs(values: RowValues) -> list[tuple[str, Any]]:
    if isinstance(values, Mapping):
        return list(values.items())
    return [(pair[0], pair[1]) for pair in values]


def set_values(
    entity: Entity,
    values: RowValues,
    on_unknown: UnknownHandler | None = None,
    target: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Copy known attribute values into ``target``.

    Args:
        entity: Entity the values belong to
        values: Mapping, or sequence of (attribute, value) pairs
        on_unknown: Called with (name, value) for names that are not attributes.
            Without it unknown names are dropped.
        target: Dict to update (a new one if omitted)

    Returns:
        The updated dict
    """
    result = target if target is not None else {}
    attributes = entity.attributes
    for name, value in _pairs(values):
        if name in attributes:
            result[name] = value
        elif on_unknown is not None:
            on_unknown(name, value)
    return result


def create_instance(
    entity: Entity,
    values: RowValues | None = None,
    on_unknown: UnknownHandler | None = None,
) -> dict[str, Any]:
    """Build a row with every attribute's default, then apply ``values``."""
    row = {attr.name: attr.default for attr in entity.spec.attributes}
    if values is not None:
        set_values(entity, values, on_unknown, target=row)
    return row


def coerce_values(entity: Entity, values: Mapping[str, Any]) -> dict[str, Any]:
    """Convert values to the Python types of their attributes.

    Raises:
        pydantic.ValidationError: If a value cannot be converted
    """
    attributes = entity.attributes
    result: dict[str, Any] = {}
    for name, value in values.items():
        attr = attributes.get(name)
        if attr is None or value is None:
            result[name] = value
            continue
        result[name] = _adapter(attr.type).validate_python(value)
    return result


def to_string(entity: Entity, row: Mapping[str, Any]) -> str:
    """Render a row as display text.

    An extension-provided ``to_string`` behavior wins; otherwise the entity's
    stringable attributes are joined by a space; otherwise the primary key.
    """
    if "to_string" in entity.behaviors:
        return str(entity.call("to_string", row))
    if entity.stringable:
        return " ".join(str(row[name]) for name in entity.stringable if row.get(name) is not None)
    key = entity.primary_key
    return str(row.get(key)) if key else str(dict(row))


def rows_by_key(entity: Entity, rows: Iterable[Mapping[str, Any]], raw: bool = False) -> dict[Any, Any]:
    """Index rows by primary key; values are rows when ``raw``, else display text."""
    key = entity.primary_key
    if key is None:
        return {}
    return {row[key]: (dict(row) if raw else to_string(entity, row)) for row in rows}
