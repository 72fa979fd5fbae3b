from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.ai_feature import service
from app.core import schemas

router = APIRouter(prefix="/v1/llm", tags=["LLM"])


@router.post("/acquisitions")
async def query_with_prompt(request: Optional[schemas.PromptRequest] = None):
    """
    Turn a free-text prompt into a GraphQL query, run it and return both.
    """
    # A request without a body is answered like one without a prompt
    payload = request.model_dump() if request else None
    result = await service.handle_prompt(payload)
    return JSONResponse(status_code=result["statusCode"], content=result["body"])
