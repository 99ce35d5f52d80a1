"""
Translation between documents and collection rows.

Every collection is a table of ``(id, data jsonb, created_at, updated_at)``.
Store-owned fields map to real columns; every other field lives inside
``data`` and is addressed with PostgREST JSON paths:

- ``data->>field`` compares the text form (strings, ``in`` lists, nulls)
- ``data->field`` compares the JSON value (numbers, booleans, arrays)
"""

import json
from typing import Any, Mapping, Optional

from pydantic_core import to_jsonable_python

from shared.models import Document

from .exceptions import InvalidConditionError
from .models import (
    CREATED_AT_FIELD,
    ID_FIELD,
    RESERVED_FIELDS,
    UPDATED_AT_FIELD,
    Condition,
    Operator,
    SortDirection,
)

COLUMNS = {
    ID_FIELD: "id",
    CREATED_AT_FIELD: "created_at",
    UPDATED_AT_FIELD: "updated_at",
}

_COMPARISONS = {
    Operator.EQ: "eq",
    Operator.NE: "neq",
    Operator.LT: "lt",
    Operator.LTE: "lte",
    Operator.GT: "gt",
    Operator.GTE: "gte",
}


def column_for(field: str, as_text: bool = True) -> str:
    """Return the PostgREST column expression addressing a document field."""
    if field in COLUMNS:
        return COLUMNS[field]
    if not field or any(ch in field for ch in ",()"):
        raise InvalidConditionError(f"Unsupported field name: {field!r}")
    path = "->".join(field.split("."))
    if as_text:
        # Only the last hop extracts text
        head, _, tail = path.rpartition("->")
        return f"data->{head}->>{tail}" if head else f"data->>{tail}"
    return f"data->{path}"


def _literal(value: Any) -> str:
    """Render a non-string value the way Postgres prints its JSON form."""
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable_python(value))


def apply_condition(builder: Any, condition: Condition) -> Any:
    """
    Add one condition to a PostgREST filter builder.

    Returns:
        The builder with the filter applied.

    Raises:
        InvalidConditionError: If the value does not fit the operator
    """
    field, operator, value = condition.field, condition.operator, condition.value
    is_column = field in COLUMNS

    if operator in (Operator.IN, Operator.NOT_IN):
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
            raise InvalidConditionError(f"'{operator.value}' expects a list of values", condition)
        values = [_literal(v) for v in value]
        column = column_for(field)
        if operator == Operator.IN:
            return builder.in_(column, values)
        return builder.not_.in_(column, values)

    if operator == Operator.ARRAY_CONTAINS:
        if is_column:
            raise InvalidConditionError(f"'{field}' is not an array field", condition)
        return builder.contains(column_for(field, as_text=False), json.dumps([to_jsonable_python(value)]))

    if value is None:
        if operator == Operator.EQ:
            return builder.is_(column_for(field), "null")
        if operator == Operator.NE:
            return builder.not_.is_(column_for(field), "null")
        raise InvalidConditionError(f"Cannot compare {field} {operator.value} null", condition)

    method = getattr(builder, _COMPARISONS[operator])
    if is_column:
        return method(COLUMNS[field], _literal(value))
    if isinstance(value, str):
        return method(column_for(field), value)
    return method(column_for(field, as_text=False), _literal(value))


def apply_order(builder: Any, field: Optional[str], direction: SortDirection) -> Any:
    """Order by a document field. A falsy field leaves the builder unordered."""
    if not field:
        return builder
    return builder.order(column_for(field, as_text=False), desc=direction == SortDirection.DESC)


def to_row(document_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build a table row from a document body, dropping store-owned fields.

    Timestamps are left to the database (see migrations/003_timestamps.sql).
    """
    return {"id": document_id, "data": to_body(data)}


def to_body(data: Mapping[str, Any]) -> dict[str, Any]:
    """JSON-ready document body without id or timestamps."""
    return to_jsonable_python({k: v for k, v in data.items() if k not in RESERVED_FIELDS})


def to_document(row: Mapping[str, Any]) -> Document:
    """Flatten a table row into ``{id, **data, createdAt, updatedAt}``."""
    document: Document = {ID_FIELD: row["id"]}
    document.update(row.get("data") or {})
    document[CREATED_AT_FIELD] = row.get("created_at")
    document[UPDATED_AT_FIELD] = row.get("updated_at")
    return document
