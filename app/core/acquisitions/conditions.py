from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple, Union

from pydantic import BaseModel


# -----------------------------------------------------------------------------
# CONDITION BUILDER
# Purpose: turn optional filter arguments into WHERE fragments + bound values.
# The listing query and the three aggregate queries all reuse one PredicateSet,
# so the fragment text and value order must never depend on anything but
# which filters are present.
# -----------------------------------------------------------------------------


# (filter argument, column, operator) in the one order predicates are built in
FILTER_COLUMNS: Tuple[Tuple[str, str, str], ...] = (
    ("term_code", "term_code", "="),
    ("currency", "price_currency_code", "="),
    ("acquired_from", "acquired_at", ">="),
    ("acquired_to", "acquired_at", "<="),
    ("acquiring_object_id", "acquiring_object_id", "="),
    ("acquired_object_id", "acquired_object_id", "="),
)


@dataclass(frozen=True)
class PredicateSet:
    fragments: Tuple[str, ...] = ()
    values: Tuple[Any, ...] = ()
    next_index: int = 1

    @property
    def where_clause(self) -> str:
        """'' when there are no filters, else 'WHERE a AND b ...'."""
        if not self.fragments:
            return ""
        return "WHERE " + " AND ".join(self.fragments)

    def __bool__(self) -> bool:
        return bool(self.fragments)


def build_conditions(filters: Union[Mapping[str, Any], BaseModel]) -> PredicateSet:
    """
    Build the shared predicate for an acquisitions query.

    Every present filter adds one `<column> <op> $<n>` fragment and one value,
    numbered from $1. Empty strings and None count as absent.

    Example:
        build_conditions({"currency": "GBP", "term_code": "cash"})
        -> fragments ("term_code = $1", "price_currency_code = $2")
           values ("cash", "GBP"), next_index 3
    """
    if isinstance(filters, BaseModel):
        filters = filters.model_dump()

    fragments: List[str] = []
    values: List[Any] = []
    param_index = 1

    for argument, column, operator in FILTER_COLUMNS:
        value = filters.get(argument)
        if value is None or value == "":
            continue
        fragments.append(f"{column} {operator} ${param_index}")
        values.append(value)
        param_index += 1

    return PredicateSet(
        fragments=tuple(fragments), values=tuple(values), next_index=param_index
    )
