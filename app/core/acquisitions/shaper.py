from typing import Any, Dict, List, Mapping, Optional, Union


# -----------------------------------------------------------------------------
# RESULT SHAPER
# Purpose: turn raw rows into the acquisitions response.
# Aggregates come back from Postgres as Decimal/int (or null on empty sets);
# they are normalized here so an empty aggregate stays null and never turns
# into 0.
# -----------------------------------------------------------------------------


COMPANY_COLUMNS = {
    "id": "id",
    "name": "name",
    "category_code": "category",
    "status": "status",
    "country_code": "country",
}


def to_number(value: Any) -> Optional[float]:
    """Null-propagating numeric coercion: None stays None."""
    if value is None:
        return None
    return float(value)


def to_count(value: Any) -> Optional[int]:
    """Same as to_number, for integer counts."""
    if value is None:
        return None
    return int(value)


def to_total_count(value: Any) -> Union[float, int]:
    """
    Bare numeric conversion for totalCount.

    Unlike every other metadata field this does not propagate null: an absent
    total surfaces as NaN.
    """
    if value is None:
        return float("nan")
    return int(value)


def map_field(row: Optional[Mapping[str, Any]], field: str) -> Any:
    if row is None:
        return None
    return row.get(field)


def build_company(row: Mapping[str, Any], prefix: str) -> Dict[str, Any]:
    """
    Nested company object from the `<prefix>_*` join columns.
    Always built, all-null when the join found nothing.
    """
    return {
        key: row.get(f"{prefix}_{suffix}") for key, suffix in COMPANY_COLUMNS.items()
    }


def shape_acquisition(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        **row,
        "acquiring_company": build_company(row, "acquiring"),
        "acquired_company": build_company(row, "acquired"),
    }


def shape_metadata(
    meta_row: Optional[Mapping[str, Any]],
    currency_rows: List[Mapping[str, Any]],
    company_row: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Combine the three aggregate results into the metadata block.

    Example:
        {
            "totalCount": 9562,
            "minPrice": 1.0,
            "maxPrice": 2600000000000.0,
            "avgPrice": 388619054.8444886,
            "sumPrice": 3715975402423.0,
            "earliestDate": date(2007, 5, 29),
            "latestDate": date(2013, 12, 12),
            "currencyCounts": [{"currency": "USD", "count": 9500}],
            "distinctAcquiringCompanies": 4000,
            "distinctAcquiredCompanies": 9000,
        }
    """
    return {
        "totalCount": to_total_count(map_field(meta_row, "total")),
        "minPrice": to_number(map_field(meta_row, "min")),
        "maxPrice": to_number(map_field(meta_row, "max")),
        "avgPrice": to_number(map_field(meta_row, "avg")),
        "sumPrice": to_number(map_field(meta_row, "sum")),
        "earliestDate": map_field(meta_row, "earliest_date"),
        "latestDate": map_field(meta_row, "latest_date"),
        # Only the groups Postgres returned, in its order
        "currencyCounts": [
            {
                "currency": map_field(row, "price_currency_code"),
                "count": to_count(map_field(row, "count")),
            }
            for row in currency_rows
        ],
        "distinctAcquiringCompanies": to_count(
            map_field(company_row, "distinct_acquiring_companies")
        ),
        "distinctAcquiredCompanies": to_count(
            map_field(company_row, "distinct_acquired_companies")
        ),
    }
