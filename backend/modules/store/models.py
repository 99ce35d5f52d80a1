"""
Document store data models.

Documents themselves are open mappings (``shared.models.Document``); the
models here describe query conditions and read results.
"""

import json
import re
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from shared.exceptions import TradepostError
from shared.models import Document

from .exceptions import InvalidConditionError


# Collections used by the trading app. The store accepts any name;
# only USERS is written by the session layer.
USERS = "users"
ITEMS = "items"
REQUESTS = "requests"
CHATS = "chats"
MESSAGES = "messages"

COLLECTIONS = (USERS, ITEMS, REQUESTS, CHATS, MESSAGES)

# Fields owned by the store rather than the document body
ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"
RESERVED_FIELDS = frozenset({ID_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD})


class Operator(str, Enum):
    """Comparison operators accepted in query conditions."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    IN = "in"
    NOT_IN = "not-in"
    ARRAY_CONTAINS = "array-contains"


class SortDirection(str, Enum):
    """Ordering direction for queries."""

    ASC = "asc"
    DESC = "desc"


# Longest symbols first so "<=" wins over "<"
_EXPRESSION = re.compile(r"^\s*([\w.]+)\s*(==|!=|<=|>=|<|>)\s*(.*?)\s*$")


class Condition(BaseModel):
    """
    A single ``field operator value`` filter.

    Conditions in a query are ANDed together, so their order never
    changes the matching set.
    """

    field: str = Field(..., min_length=1, description="Document field to compare")
    operator: Operator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Value to compare against")

    model_config = {"frozen": True}

    @classmethod
    def coerce(cls, raw: Union["Condition", Mapping[str, Any], Sequence[Any]]) -> "Condition":
        """
        Build a condition from a model, a mapping or a (field, op, value) triple.

        Raises:
            InvalidConditionError: If the input cannot be interpreted
        """
        if isinstance(raw, Condition):
            return raw
        try:
            if isinstance(raw, Mapping):
                return cls(
                    field=raw["field"],
                    operator=raw.get("operator", raw.get("op")),
                    value=raw.get("value"),
                )
            if isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 3:
                field, operator, value = raw
                return cls(field=field, operator=operator, value=value)
        except (KeyError, ValueError) as e:
            raise InvalidConditionError(f"Invalid condition: {e}", raw) from e
        raise InvalidConditionError("Condition must be a mapping or a (field, operator, value) triple", raw)

    @classmethod
    def parse(cls, expression: str) -> "Condition":
        """
        Parse a compact expression such as ``price<=100`` or ``status==open``.

        The value is read as JSON when possible and as a plain string otherwise.
        """
        match = _EXPRESSION.match(expression)
        if not match:
            raise InvalidConditionError(f"Cannot parse condition: {expression!r}", expression)
        field, operator, raw_value = match.groups()
        try:
            value = json.loads(raw_value)
        except json.JSONDecodeError:
            value = raw_value
        return cls(field=field, operator=operator, value=value)


ConditionLike = Union[Condition, Mapping[str, Any], Sequence[Any]]


class DocumentResult(BaseModel):
    """Outcome of a single-document read. ``document`` is None when absent."""

    success: bool
    document: Optional[Document] = None
    error: Optional[str] = None
    code: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def found(self) -> bool:
        return self.success and self.document is not None

    @classmethod
    def failure(cls, error: TradepostError) -> "DocumentResult":
        return cls(success=False, error=error.message, code=error.code)


class QueryResult(BaseModel):
    """Outcome of a filtered read, in query order."""

    success: bool
    documents: list[Document] = Field(default_factory=list)
    error: Optional[str] = None
    code: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def failure(cls, error: TradepostError) -> "QueryResult":
        return cls(success=False, error=error.message, code=error.code)
