import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncConnection

from app.core import errors, schemas
from app.core.errors import QueryStage
from app.core.database import run_db_query
from app.core.acquisitions import builders, shaper
from app.core.acquisitions.conditions import build_conditions


# -----------------------------------------------------------------------------
# QUERY ENGINE
# Purpose: run the acquisitions queries and return shaped results.
# The listing and its three aggregates run one after another on the same
# connection; the first failure aborts the whole call.
# -----------------------------------------------------------------------------


logger = logging.getLogger(__name__)


async def _run_stage(
    conn: AsyncConnection, stage: QueryStage, sql: str, params: Sequence[Any]
) -> List[Dict[str, Any]]:
    try:
        rows = await run_db_query(conn, sql, params)
    except Exception as error:
        logger.error(f"Error when querying DB ({stage.value}): {error!r}")
        raise errors.QueryExecutionError(stage) from error

    logger.debug(f"{stage.value} query returned {len(rows)} rows")
    return rows


async def list_acquisitions(
    conn: AsyncConnection, filters: schemas.AcquisitionFilters
) -> Dict[str, Any]:
    """
    List acquisitions with aggregate metadata for the same filters.

    Runs four statements in order: listing, stats, currency distribution,
    distinct company counts. All four share one predicate; only the listing
    gets LIMIT/OFFSET appended to its parameters.

    Args:
        conn: Database connection
        filters: Filters, paging and sorting

    Returns:
        {"rows": [...acquisitions with nested companies...], "metadata": {...}}

    Raises:
        QueryExecutionError: tagged with the stage that failed
    """
    predicate = build_conditions(filters)
    shared_values = list(predicate.values)
    listing_values = shared_values + [filters.limit, filters.offset]
    logger.debug(f"list_acquisitions values: {listing_values}")

    listing_rows = await _run_stage(
        conn,
        QueryStage.LISTING,
        builders.build_acquisitions_query(
            predicate, filters.sort_by, filters.sort_order
        ),
        listing_values,
    )
    meta_rows = await _run_stage(
        conn, QueryStage.STATS, builders.build_meta_query(predicate), shared_values
    )
    currency_rows = await _run_stage(
        conn,
        QueryStage.CURRENCY,
        builders.build_currency_meta_query(predicate),
        shared_values,
    )
    company_rows = await _run_stage(
        conn,
        QueryStage.COMPANY_COUNT,
        builders.build_company_meta_query(predicate),
        shared_values,
    )

    return {
        "rows": [shaper.shape_acquisition(row) for row in listing_rows],
        "metadata": shaper.shape_metadata(
            meta_rows[0] if meta_rows else None,
            currency_rows,
            company_rows[0] if company_rows else None,
        ),
    }


def coerce_id(value: Union[str, int, None]) -> Optional[int]:
    """
    Coerce a lookup id to an integer.

    Anything that is not a whole number becomes None, which binds as NULL and
    therefore matches no row.
    """
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


async def get_acquisition(
    conn: AsyncConnection, acquisition_id: Union[str, int, None]
) -> Optional[Dict[str, Any]]:
    """
    Fetch one acquisition by its primary key.

    Returns None when nothing matches, including ids that are not numbers.
    """
    if acquisition_id is None or acquisition_id == "":
        raise errors.ValidationError("Missing acquisition id")

    id_num = coerce_id(acquisition_id)
    logger.debug(f"get_acquisition id: {id_num}")

    rows = await _run_stage(
        conn, QueryStage.LOOKUP, builders.build_acquisition_query(), [id_num]
    )
    if not rows:
        return None

    return shaper.shape_acquisition(rows[0])
