# services/queries.py
"""Filter / sort / pagination specs for task and note listings.

Caller-supplied values never reach the store as structure: enum filters are
matched against known values, ids are coerced, the sort column comes from an
allow-list and search text is bound as an escaped LIKE parameter. Building a
spec is pure; only ``paginate`` talks to the database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, select

from config.settings import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from models.enums import TASK_PRIORITIES, TASK_STATUSES
from models.note import Note
from models.task import Task
from utils.coerce import MAX_ID, coerce_id

DEFAULT_SORT_FIELD = "created_at"

TASK_SORT_FIELDS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
    "due_date": Task.due_date,
}

NOTE_SORT_FIELDS = {
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
}

# camelCase names a JS-style client sends
SORT_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "dueDate": "due_date",
}

LIKE_ESCAPE = "\\"

# keeps (page - 1) * limit inside the range an OFFSET accepts
MAX_PAGE = MAX_ID // MAX_PAGE_LIMIT


@dataclass
class Pagination:
    total: int
    page: int
    limit: int
    pages: int

    def to_dict(self) -> dict:
        return {"total": self.total, "page": self.page, "limit": self.limit, "pages": self.pages}


@dataclass
class QuerySpec:
    filters: List[Any] = field(default_factory=list)
    order_by: List[Any] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> Pagination:
        return Pagination(
            total=total,
            page=self.page,
            limit=self.limit,
            pages=math.ceil(total / self.limit),
        )


def get_param(params: Optional[Mapping[str, Any]], *names: str) -> Any:
    if not params:
        return None
    for name in names:
        if params.get(name) is not None:
            return params[name]
    return None


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 1 else None


def coerce_page(value: Any) -> int:
    return min(_positive_int(value) or 1, MAX_PAGE)


def coerce_limit(value: Any) -> int:
    limit = _positive_int(value) or DEFAULT_PAGE_LIMIT
    return min(limit, MAX_PAGE_LIMIT)


def enum_filter(value: Any, allowed: Sequence[str]) -> Optional[str]:
    """Lower-cased ``value`` if it is one of ``allowed``, else None."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in allowed else None


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def search_clause(term: Any, columns: Iterable[Any]):
    if not isinstance(term, str) or not term.strip():
        return None
    pattern = f"%{escape_like(term.strip())}%"
    return or_(*(col.ilike(pattern, escape=LIKE_ESCAPE) for col in columns))


def resolve_sort(sort_by: Any, sort_order: Any, allowed: Mapping[str, Any]) -> Tuple[str, str, Any]:
    name = SORT_ALIASES.get(sort_by, sort_by) if isinstance(sort_by, str) else None
    if name not in allowed:
        name = DEFAULT_SORT_FIELD
    order = "asc" if isinstance(sort_order, str) and sort_order.strip().lower() == "asc" else "desc"
    column = allowed[name]
    return name, order, column.asc() if order == "asc" else column.desc()


def _build(params, base_filters, allowed_sort, tie_breaker, search_columns) -> QuerySpec:
    filters = list(base_filters)
    clause = search_clause(get_param(params, "search"), search_columns)
    if clause is not None:
        filters.append(clause)

    sort_name, sort_order, order_clause = resolve_sort(
        get_param(params, "sort_by", "sortBy", "sort"),
        get_param(params, "sort_order", "sortOrder", "order"),
        allowed_sort,
    )
    tie = tie_breaker.asc() if sort_order == "asc" else tie_breaker.desc()

    return QuerySpec(
        filters=filters,
        order_by=[order_clause, tie],
        page=coerce_page(get_param(params, "page")),
        limit=coerce_limit(get_param(params, "limit")),
        sort_by=sort_name,
        sort_order=sort_order,
    )


def build_task_query(params: Optional[Mapping[str, Any]] = None, base_filters: Iterable[Any] = ()) -> QuerySpec:
    spec = _build(params, base_filters, TASK_SORT_FIELDS, Task.id, (Task.title, Task.description))

    status = enum_filter(get_param(params, "status"), TASK_STATUSES)
    if status:
        spec.filters.append(Task.status == status)

    priority = enum_filter(get_param(params, "priority"), TASK_PRIORITIES)
    if priority:
        spec.filters.append(Task.priority == priority)

    assigned_to = coerce_id(get_param(params, "assigned_to", "assignedTo"))
    if assigned_to is not None:
        spec.filters.append(Task.assigned_to == assigned_to)

    return spec


def build_note_query(params: Optional[Mapping[str, Any]] = None, base_filters: Iterable[Any] = ()) -> QuerySpec:
    return _build(params, base_filters, NOTE_SORT_FIELDS, Note.id, (Note.content,))


def paginate(session: Session, model, spec: QuerySpec) -> Tuple[list, Pagination]:
    """Run the count and the page query with the same filters."""
    total = session.exec(select(func.count()).select_from(model).where(*spec.filters)).one()
    rows = session.exec(
        select(model)
        .where(*spec.filters)
        .order_by(*spec.order_by)
        .offset(spec.skip)
        .limit(spec.limit)
    ).all()
    return list(rows), spec.pagination(total)
