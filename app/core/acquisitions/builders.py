from enum import Enum
from typing import Any, Optional, Union

from app.core import errors
from app.core.acquisitions.conditions import PredicateSet


# -----------------------------------------------------------------------------
# QUERY ASSEMBLER
# Purpose: the SQL for the listing, its three aggregates and the single lookup.
# Only whitelisted identifiers are ever formatted into the text; every filter
# value stays a positional parameter.
# -----------------------------------------------------------------------------


SORT_FIELDS = frozenset({"acquired_at", "price_amount", "acquisition_id"})
SORT_ORDERS = frozenset({"ASC", "DESC"})

ACQUISITION_SELECT = """
    SELECT
      a.*,
      acquired.id AS acquired_id, acquired.name AS acquired_name,
      acquired.category_code AS acquired_category, acquired.status AS acquired_status,
      acquired.country_code AS acquired_country,
      acquiring.id AS acquiring_id, acquiring.name AS acquiring_name,
      acquiring.category_code AS acquiring_category, acquiring.status AS acquiring_status,
      acquiring.country_code AS acquiring_country
    FROM acquisitions a
    LEFT JOIN companies acquired ON a.acquired_object_id = acquired.id
    LEFT JOIN companies acquiring ON a.acquiring_object_id = acquiring.id
"""


def _plain(value: Union[Enum, str, None]) -> Optional[str]:
    return value.value if isinstance(value, Enum) else value


def build_order_clause(sort_by: Any = None, sort_order: Any = "ASC") -> str:
    """
    ORDER BY for the listing.

    `id ASC` always closes the ordering so rows with equal (or null) sort keys
    come back in the same order on every page.
    """
    sort_by = _plain(sort_by)
    sort_order = (_plain(sort_order) or "ASC").upper()

    if not sort_by:
        return "ORDER BY id"
    if sort_by not in SORT_FIELDS:
        raise errors.ValidationError(f"Unsupported sort field: {sort_by}")
    if sort_order not in SORT_ORDERS:
        raise errors.ValidationError(f"Unsupported sort order: {sort_order}")

    return f"ORDER BY {sort_by} {sort_order}, id ASC"


def build_acquisitions_query(
    predicate: PredicateSet, sort_by: Any = None, sort_order: Any = "ASC"
) -> str:
    """
    Listing query: joined rows, shared predicate, total order, then
    LIMIT/OFFSET numbered right after the predicate's parameters.
    """
    limit_index = predicate.next_index
    offset_index = limit_index + 1

    parts = [ACQUISITION_SELECT.strip()]
    if predicate:
        parts.append(predicate.where_clause)
    parts.append(build_order_clause(sort_by, sort_order))
    parts.append(f"LIMIT ${limit_index} OFFSET ${offset_index}")

    return "\n".join(parts)


def build_acquisition_query() -> str:
    """Single acquisition by primary key, bound as $1."""
    return f"{ACQUISITION_SELECT.strip()}\nWHERE a.id = $1"


def _with_condition(predicate: PredicateSet, extra: Optional[str] = None) -> str:
    clause = predicate.where_clause
    if extra:
        clause = f"{clause} AND {extra}" if clause else f"WHERE {extra}"
    return clause


def build_meta_query(predicate: PredicateSet) -> str:
    # Price statistics only consider priced deals
    where = _with_condition(predicate, "price_amount IS NOT NULL")
    return (
        "SELECT COUNT(*) AS total, MIN(price_amount) AS min, MAX(price_amount) AS max, "
        "AVG(price_amount) AS avg, SUM(price_amount) AS sum, "
        "MIN(acquired_at) AS earliest_date, MAX(acquired_at) AS latest_date "
        f"FROM acquisitions {where}"
    ).rstrip()


def build_currency_meta_query(predicate: PredicateSet) -> str:
    where = _with_condition(predicate)
    return " ".join(
        part
        for part in (
            "SELECT price_currency_code, COUNT(*) AS count FROM acquisitions",
            where,
            "GROUP BY price_currency_code",
        )
        if part
    )


def build_company_meta_query(predicate: PredicateSet) -> str:
    where = _with_condition(predicate)
    return (
        "SELECT COUNT(DISTINCT acquiring_object_id) AS distinct_acquiring_companies, "
        "COUNT(DISTINCT acquired_object_id) AS distinct_acquired_companies "
        f"FROM acquisitions {where}"
    ).rstrip()
