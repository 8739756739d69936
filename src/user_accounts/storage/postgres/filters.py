"""Equality filter composition for list queries.

Turns a ``field name -> expected value`` mapping into conjunctive
``column = :filter_N`` clauses.  Values are always bound parameters and
never rendered into the statement text; field names must be present in
the allow-list supplied by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy import ColumnElement, bindparam

from user_accounts.core.errors import InvalidFilterError


@dataclass(frozen=True)
class EqualityFilter:
    """Composed filter: one clause per key plus the ordered bound values."""

    clauses: tuple[ColumnElement[bool], ...] = ()
    params: tuple[Any, ...] = ()
    fields: tuple[str, ...] = field(default=())

    def __bool__(self) -> bool:
        return bool(self.clauses)


def compose_filters(
    filters: Mapping[str, Any] | None,
    allowed: Mapping[str, ColumnElement[Any]],
) -> EqualityFilter:
    """Compose an :class:`EqualityFilter` from *filters*.

    Args:
        filters: Field name to expected value.  ``None`` or empty yields an
            empty filter; the caller still applies fixed predicates such as
            ``disabled = false`` on its own.
        allowed: Allow-list of filterable field names mapped to the column
            each one compares against.

    Raises:
        InvalidFilterError: If any key is not in *allowed*.
    """
    if not filters:
        return EqualityFilter()

    rejected = [name for name in filters if name not in allowed]
    if rejected:
        raise InvalidFilterError(rejected)

    # Sorted so the rendered statement is the same for equal mappings.
    names = tuple(sorted(filters))
    clauses = []
    params = []
    for index, name in enumerate(names):
        column = allowed[name]
        value = filters[name]
        clauses.append(column == bindparam(f"filter_{index}", value, type_=column.type))
        params.append(value)

    return EqualityFilter(clauses=tuple(clauses), params=tuple(params), fields=names)
