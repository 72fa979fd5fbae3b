import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import pydantic
from graphql import GraphQLResolveInfo, build_schema, graphql
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core import errors, schemas
from app.core.acquisitions import engine


# -----------------------------------------------------------------------------
# GRAPHQL SCHEMA
# Purpose: the published query surface over the acquisitions engine.
# Query documents written by the language model are executed here and nowhere
# else, so they can only reach what this schema exposes.
# -----------------------------------------------------------------------------


logger = logging.getLogger(__name__)

TYPE_DEFS = '''
  scalar DateTime

  enum AcquisitionSortField {
    acquired_at
    price_amount
    acquisition_id
  }

  enum SortOrder {
    ASC
    DESC
  }

  type Acquisition {
    id: ID!
    "Unique ID of the acquisition"
    acquisition_id: String
    "Acquiring entity unique ID"
    acquiring_object_id: String
    "Acquired entity unique ID"
    acquired_object_id: String
    "Type of payment used in the acquisition"
    term_code: String
    "Amount paid"
    price_amount: Float
    "Currency of the transaction"
    price_currency_code: String
    "Date of the deal"
    acquired_at: DateTime
    "URL of the information source"
    source_url: String
    "Short description of the information source"
    source_description: String
    "Date the record was created at"
    created_at: DateTime
    "Date the record was updated at"
    updated_at: DateTime
    "price_amount and price_currency_code together, eg 100000 GBP"
    price: String
    "Acquiring company"
    acquiring_company: Company
    "Acquired company"
    acquired_company: Company
  }

  type Company {
    "Company ID, null when the company is unknown"
    id: ID
    name: String
    category_code: String
    status: String
    country_code: String
  }

  type CurrencyCount {
    currency: String
    count: Int
  }

  type AcquisitionMetadata {
    totalCount: Int!
    minPrice: Float
    maxPrice: Float
    avgPrice: Float
    sumPrice: Float
    earliestDate: DateTime
    latestDate: DateTime
    currencyCounts: [CurrencyCount]
    distinctAcquiringCompanies: Int
    distinctAcquiredCompanies: Int
  }

  type AcquisitionsResult {
    rows: [Acquisition!]!
    metadata: AcquisitionMetadata!
  }

  type Query {
    """
    List acquisitions with optional filters like date range, currency, type of
    payment and sorting by acquisition id, acquisition date or price.
    """
    acquisitions(
      limit: Int = 100
      offset: Int = 0
      term_code: String
      currency: String
      acquired_from: DateTime
      acquired_to: DateTime
      acquiring_object_id: String
      acquired_object_id: String
      sort_by: AcquisitionSortField
      sort_order: SortOrder = ASC
    ): AcquisitionsResult!

    "Get details about a single acquisition by its ID."
    acquisition(id: ID!): Acquisition
  }
'''


def serialize_datetime(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _connection(info: GraphQLResolveInfo) -> AsyncConnection:
    return info.context["db"]


async def resolve_acquisitions(_root: Any, info: GraphQLResolveInfo, **args: Any):
    try:
        filters = schemas.AcquisitionFilters.model_validate(args)
    except pydantic.ValidationError as error:
        logger.warning(f"Rejected acquisitions arguments: {error.errors()}")
        raise errors.ValidationError("Invalid acquisitions arguments") from error
    return await engine.list_acquisitions(_connection(info), filters)


async def resolve_acquisition(_root: Any, info: GraphQLResolveInfo, id: str):
    return await engine.get_acquisition(_connection(info), id)


def resolve_price(acquisition: Dict[str, Any], _info: GraphQLResolveInfo):
    amount = acquisition.get("price_amount")
    currency = acquisition.get("price_currency_code")
    if amount is None or amount == "" or not currency:
        return None
    return f"{amount} {currency}"


def make_executable_schema():
    """Build the schema from TYPE_DEFS and bind resolvers and scalar/enum values."""
    schema = build_schema(TYPE_DEFS)

    schema.type_map["DateTime"].serialize = serialize_datetime

    # Enum arguments arrive in resolvers as their names
    for enum_name in ("AcquisitionSortField", "SortOrder"):
        for value_name, value in schema.type_map[enum_name].values.items():
            value.value = value_name

    query_fields = schema.query_type.fields
    query_fields["acquisitions"].resolve = resolve_acquisitions
    query_fields["acquisition"].resolve = resolve_acquisition
    schema.type_map["Acquisition"].fields["price"].resolve = resolve_price

    return schema


schema = make_executable_schema()


async def execute_query(
    query_text: str,
    variables: Optional[Dict[str, Any]],
    conn: AsyncConnection,
    operation_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Execute a GraphQL document against the acquisitions schema.

    The connection is handed to resolvers through the execution context.
    Returns the standard {"data": ..., "errors": [...]} response shape.
    """
    result = await graphql(
        schema,
        query_text,
        context_value={"db": conn},
        variable_values=variables,
        operation_name=operation_name,
    )
    if result.errors:
        logger.warning(f"GraphQL execution returned {len(result.errors)} error(s)")
        for error in result.errors:
            logger.debug(f"GraphQL error: {error.message}")
    return result.formatted
