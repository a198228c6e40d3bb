from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Intent(str, Enum):
    """CRUD operation requested by an HTTP call."""

    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class FilterOperator(str, Enum):
    """Comparison operators accepted in ``field[op]=value`` filters."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    IN = "in"

    @property
    def sql(self) -> str:
        """SQL comparison token for this operator."""
        return _OPERATOR_SQL[self]


_OPERATOR_SQL = {
    FilterOperator.EQ: "=",
    FilterOperator.NE: "<>",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
    FilterOperator.LIKE: "LIKE",
    FilterOperator.IN: "IN",
}


@dataclass(frozen=True)
class FilterCondition:
    """One ``field op value`` predicate; ``value`` is a list for ``in``."""

    field: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class ParsedRequest:
    """Intermediate representation of an HTTP request, independent of SQL."""

    intent: Intent
    table_name: str
    record_id: Optional[str] = None
    filters: Tuple[FilterCondition, ...] = ()
    sort: Tuple[SortSpec, ...] = ()
    limit: Optional[int] = None
    offset: int = 0
    rows: Optional[Tuple[Dict[str, Any], ...]] = None
    is_bulk: bool = False


@dataclass(frozen=True)
class SqlStatement:
    """Parameterized statement in canonical ``$n`` form."""

    text: str
    params: Tuple[Any, ...] = ()
    # Set when the INSERT carries a RETURNING clause for the generated key.
    returns_key: bool = False


@dataclass
class ResponseEnvelope:
    """JSON body shape shared by every endpoint."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    total: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize; ``total`` only appears on list responses."""
        body: Dict[str, Any] = {"success": self.success, "data": self.data, "error": self.error}
        if self.total is not None:
            body["total"] = self.total
        return body


@dataclass
class CrudResponse:
    """Status code plus envelope; ``envelope`` is None for 204 responses."""

    status_code: int
    envelope: Optional[ResponseEnvelope] = None

    @property
    def body(self) -> Optional[Dict[str, Any]]:
        return self.envelope.to_dict() if self.envelope is not None else None


def ok(data: Any, status_code: int = 200, total: Optional[int] = None) -> CrudResponse:
    """Build a success response."""
    return CrudResponse(status_code, ResponseEnvelope(success=True, data=data, total=total))


def failure(status_code: int, message: str) -> CrudResponse:
    """Build an error response."""
    return CrudResponse(status_code, ResponseEnvelope(success=False, error=message))
