from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core import graph, schemas
from app.core.acquisitions import engine
from app.core.database import get_db

router = APIRouter(prefix="/v1/acquisitions", tags=["Acquisitions"])

db_dep = Annotated[AsyncConnection, Depends(get_db)]
filters_dep = Annotated[schemas.AcquisitionFilters, Query()]


# Acquisitions list with metadata
@router.get(
    "",
    response_model=schemas.AcquisitionsResult,
    status_code=status.HTTP_200_OK,
)
async def list_acquisitions(filters: filters_dep, db: db_dep):
    """
    Return a page of acquisitions plus aggregate metadata for the same filters.
    """
    return await engine.list_acquisitions(db, filters)


# Single acquisition
@router.get(
    "/{acquisition_id}",
    response_model=schemas.AcquisitionResponse,
    status_code=status.HTTP_200_OK,
)
async def get_acquisition(acquisition_id: str, db: db_dep):
    acquisition = await engine.get_acquisition(db, acquisition_id)
    if acquisition is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Acquisition not found")
    return acquisition


# GraphQL over HTTP
@router.post("", status_code=status.HTTP_200_OK)
async def graphql_query(request: schemas.GraphQLRequest, db: db_dep):
    """Execute a GraphQL query against the acquisitions schema."""
    return await graph.execute_query(
        request.query, request.variables, db, operation_name=request.operationName
    )
