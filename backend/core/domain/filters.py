"""
core.domain.filters — Typed, enumerated query-string filter builder.

List endpoints accept filters as query parameters.  Instead of passing
arbitrary parameters straight into the ORM, each service declares the
exact fields it supports, how each value is parsed, and which comparison
operators are allowed.  Anything outside that declaration is either
ignored (unknown field) or rejected (known field, bad operator / value).

Query-string convention
-----------------------
    ?priority=high                      → priority = 'high'
    ?status[in]=submitted,reopened      → status IN (...)
    ?created_at[gte]=2024-01-01         → created_at::date >= 2024-01-01
    ?sort=-created_at,priority          → ORDER BY created_at DESC, priority

Usage::

    from core.domain.filters import FilterField, QueryFilterBuilder, parse_choice

    COMPLAINT_FILTERS = QueryFilterBuilder(
        fields=[
            FilterField("status", "status", parse_choice(ComplaintStatus)),
            FilterField("created_at", "created_at__date", parse_date,
                        operators=RANGE_OPERATORS),
        ],
        sortable={"created_at": "created_at", "priority": "priority"},
        default_sort="-created_at",
    )

    qs = COMPLAINT_FILTERS.apply(qs, request.query_params)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from django.db.models import Q, QuerySet
from django.db.models.expressions import BaseExpression, OrderBy
from django.utils.dateparse import parse_date as _parse_iso_date

from core.domain.exceptions import DomainError

#: Operators supported by the builder and their ORM lookup suffix.
OPERATOR_LOOKUPS: dict[str, str] = {
    "exact": "",
    "gt": "__gt",
    "gte": "__gte",
    "lt": "__lt",
    "lte": "__lte",
    "in": "__in",
}

EQUALITY_OPERATORS: frozenset[str] = frozenset({"exact", "in"})
RANGE_OPERATORS: frozenset[str] = frozenset({"exact", "gt", "gte", "lt", "lte"})
ALL_OPERATORS: frozenset[str] = frozenset(OPERATOR_LOOKUPS)

_PARAM_RE = re.compile(r"^(?P<field>[a-z_]+)(?:\[(?P<op>[a-z]+)\])?$")


# ── Value parsers ───────────────────────────────────────────────────

def parse_choice(choices_class: Any) -> Callable[[str], str]:
    """Return a parser accepting only the values of a ``TextChoices`` class."""
    allowed = {str(value) for value in choices_class.values}

    def _parse(raw: str) -> str:
        if raw not in allowed:
            raise ValueError(
                f"'{raw}' is not one of: {', '.join(sorted(allowed))}"
            )
        return raw

    return _parse


def parse_int(raw: str) -> int:
    return int(raw)


def parse_date(raw: str):
    value = _parse_iso_date(raw)
    if value is None:
        raise ValueError(f"'{raw}' is not a valid ISO date (YYYY-MM-DD)")
    return value


def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes"}:
        return True
    if lowered in {"0", "false", "no"}:
        return False
    raise ValueError(f"'{raw}' is not a boolean")


# ── Declarations ────────────────────────────────────────────────────

@dataclass(frozen=True)
class FilterField:
    """
    One filterable field.

    Attributes:
        param:     Name used in the query string.
        lookup:    ORM path the value is compared against.
        parser:    Converts one raw string into a typed value; raises
                   ``ValueError`` for invalid input.
        operators: Operators permitted for this field.
    """

    param: str
    lookup: str
    parser: Callable[[str], Any]
    operators: frozenset[str] = EQUALITY_OPERATORS


class QueryFilterBuilder:
    """
    Builds a ``Q`` expression and an ordering from query parameters,
    restricted to the declared fields, operators and sort keys.
    """

    #: Parameters consumed elsewhere (pagination, sorting, search).
    RESERVED_PARAMS: frozenset[str] = frozenset({"page", "limit", "sort", "search", "format"})

    def __init__(
        self,
        *,
        fields: Iterable[FilterField],
        sortable: Mapping[str, str | BaseExpression] | None = None,
        default_sort: str = "-created_at",
    ) -> None:
        self.fields = {f.param: f for f in fields}
        self.sortable = dict(sortable or {})
        self.default_sort = default_sort

    # ── Public API ──────────────────────────────────────────────────

    def build_q(self, params: Mapping[str, Any]) -> Q:
        """
        Translate ``params`` into a ``Q`` object.

        Raises:
            DomainError: On a disallowed operator or an unparsable value.
        """
        q = Q()
        for key in params:
            if key in self.RESERVED_PARAMS:
                continue
            match = _PARAM_RE.match(key)
            if match is None or match.group("field") not in self.fields:
                continue

            field = self.fields[match.group("field")]
            op = match.group("op") or "exact"
            if op not in OPERATOR_LOOKUPS:
                raise DomainError(f"Unknown filter operator '{op}' on '{field.param}'.")
            if op not in field.operators:
                raise DomainError(
                    f"Operator '{op}' is not allowed on '{field.param}'. "
                    f"Allowed: {', '.join(sorted(field.operators))}."
                )

            raw = self._raw_value(params, key)
            value = self._parse(field, op, raw)
            q &= Q(**{f"{field.lookup}{OPERATOR_LOOKUPS[op]}": value})
        return q

    def ordering(self, params: Mapping[str, Any]) -> list[str | OrderBy]:
        """
        Translate ``?sort=`` into ORM ordering terms.

        Unknown sort keys are rejected so a client typo does not
        silently fall back to the default order.  A sort key may map to
        an expression instead of a field name, e.g. a rank for an
        ordinal choice field.
        """
        raw = self._raw_value(params, "sort") if "sort" in params else ""
        if not raw:
            raw = self.default_sort

        terms: list[str | OrderBy] = []
        for token in (t.strip() for t in raw.split(",")):
            if not token:
                continue
            descending = token.startswith("-")
            name = token.lstrip("-")
            if name not in self.sortable:
                raise DomainError(
                    f"Cannot sort by '{name}'. "
                    f"Allowed: {', '.join(sorted(self.sortable))}."
                )
            target = self.sortable[name]
            if isinstance(target, str):
                terms.append(f"{'-' if descending else ''}{target}")
            else:
                terms.append(target.desc() if descending else target.asc())
        # Stable pagination
        terms.append("-pk")
        return terms

    def apply(self, queryset: QuerySet, params: Mapping[str, Any]) -> QuerySet:
        """Filter and order ``queryset`` according to ``params``."""
        return queryset.filter(self.build_q(params)).order_by(*self.ordering(params))

    # ── Private helpers ─────────────────────────────────────────────

    @staticmethod
    def _raw_value(params: Mapping[str, Any], key: str) -> str:
        # QueryDict.__getitem__ returns the last value for repeated keys
        value = params[key]
        if isinstance(value, (list, tuple)):
            value = value[-1] if value else ""
        return str(value).strip()

    @staticmethod
    def _parse(field: FilterField, op: str, raw: str) -> Any:
        try:
            if op == "in":
                return [field.parser(part.strip()) for part in raw.split(",") if part.strip()]
            return field.parser(raw)
        except (TypeError, ValueError) as exc:
            raise DomainError(f"Invalid value for filter '{field.param}': {exc}")
