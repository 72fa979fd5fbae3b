from fastapi import APIRouter
from app.api.endpoints import acquisitions, llm

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(acquisitions.router)
api_router.include_router(llm.router)
