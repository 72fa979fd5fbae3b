import math
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =========================
# Enums
# =========================
class SortField(str, Enum):
    ACQUIRED_AT = "acquired_at"
    PRICE_AMOUNT = "price_amount"
    ACQUISITION_ID = "acquisition_id"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# =========================
# FILTERS
# =========================
class AcquisitionFilters(BaseModel):
    """
    Optional filters, paging and sorting for the acquisitions listing.
    Field order here is the order predicates are built in.
    """

    term_code: Optional[str] = None
    currency: Optional[str] = None
    acquired_from: Optional[Union[date, datetime]] = None
    acquired_to: Optional[Union[date, datetime]] = None
    acquiring_object_id: Optional[str] = None
    acquired_object_id: Optional[str] = None

    limit: int = Field(100, ge=0)
    offset: int = Field(0, ge=0)

    sort_by: Optional[SortField] = None
    sort_order: SortOrder = SortOrder.ASC

    @field_validator("limit", "offset", "sort_order", mode="before")
    @classmethod
    def null_means_default(cls, value, info):
        # GraphQL clients may send an explicit null for a defaulted argument
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


# =========================
# ACQUISITION
# =========================
class CompanyResponse(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    category_code: Optional[str] = None
    status: Optional[str] = None
    country_code: Optional[str] = None


class AcquisitionResponse(BaseModel):
    id: int
    acquisition_id: Optional[int] = None
    acquiring_object_id: Optional[str] = None
    acquired_object_id: Optional[str] = None
    term_code: Optional[str] = None
    price_amount: Optional[float] = None
    price_currency_code: Optional[str] = None
    acquired_at: Optional[date] = None
    source_url: Optional[str] = None
    source_description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    acquiring_company: CompanyResponse
    acquired_company: CompanyResponse

    model_config = ConfigDict(from_attributes=True)


# =========================
# METADATA
# =========================
class CurrencyCount(BaseModel):
    currency: Optional[str] = None
    count: Optional[int] = None


class AcquisitionMetadata(BaseModel):
    totalCount: Optional[int] = None
    minPrice: Optional[float] = None
    maxPrice: Optional[float] = None
    avgPrice: Optional[float] = None
    sumPrice: Optional[float] = None
    earliestDate: Optional[Union[datetime, date]] = None
    latestDate: Optional[Union[datetime, date]] = None
    currencyCounts: List[CurrencyCount] = []
    distinctAcquiringCompanies: Optional[int] = None
    distinctAcquiredCompanies: Optional[int] = None

    @field_validator("totalCount", mode="before")
    @classmethod
    def nan_to_none(cls, value):
        # JSON has no NaN; an absent count is reported as null over HTTP
        if isinstance(value, float) and math.isnan(value):
            return None
        return value


class AcquisitionsResult(BaseModel):
    rows: List[AcquisitionResponse]
    metadata: AcquisitionMetadata


# =========================
# GRAPHQL / LLM
# =========================
class GraphQLRequest(BaseModel):
    query: str
    variables: Optional[Dict[str, Any]] = None
    operationName: Optional[str] = None


class PromptRequest(BaseModel):
    # Optional on purpose: a missing prompt is answered with 400, not 422
    prompt: Optional[str] = None


class StructuredQuery(BaseModel):
    """The {queryText, variables} document produced by the language model."""

    queryText: str
    variables: Dict[str, Any]
