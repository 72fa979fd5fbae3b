import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core import errors
from app.core.config import settings
from app.core.database import dispose_engine, init_db
from app.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# Close the engine once everything is done and close all the connections
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create the tables on startup when asked to
    if settings.INIT_DB:
        await init_db()
        logger.info("DB initialized, starting server")

    yield
    await dispose_engine()


app = FastAPI(title="Acquisitions API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.exception_handler(errors.ValidationError)
async def validation_error_handler(request: Request, error: errors.ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(error)}
    )


@app.exception_handler(errors.QueryExecutionError)
async def query_error_handler(request: Request, error: errors.QueryExecutionError):
    logger.error(f"{request.url.path}: {error.stage.value} query failed")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": errors.QueryExecutionError.message},
    )


@app.exception_handler(errors.InvalidModelOutput)
async def model_output_handler(request: Request, error: errors.InvalidModelOutput):
    logger.error(f"{request.url.path}: {error}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Could not generate a query for this prompt"},
    )


@app.exception_handler(errors.ConnectionUnavailable)
@app.exception_handler(errors.ModelUnavailable)
async def unavailable_handler(request: Request, error: errors.AcquisitionsError):
    logger.error(f"{request.url.path}: {error}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service unavailable"},
    )


@app.get("/")
async def root():
    return {"message": "Welcome to the Acquisitions API"}
