import logging
from typing import Optional

from openai import AsyncOpenAI

from app.core import errors
from app.core.config import settings

logger = logging.getLogger(__name__)


def get_openai_client() -> AsyncOpenAI:
    if not settings.OPENAI_API_KEY:
        raise errors.ModelUnavailable("Missing OPENAI_API_KEY")
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


async def run_llm(
    user_prompt: str, system_prompt: str, client: Optional[AsyncOpenAI] = None
) -> str:
    """
    Ask the model to translate a prompt into a query document.

    Returns the raw response text. The text is untrusted and still has to go
    through the validator.

    Raises:
        EmptyModelResponse: the model produced no text (not retried)
    """
    client = client or get_openai_client()
    response = await client.responses.create(
        model=settings.OPENAI_MODEL,
        input=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    )

    output_text = response.output_text
    if not output_text or not output_text.strip():
        logger.error("No response from LLM")
        raise errors.EmptyModelResponse("LLM returned empty response")

    logger.debug(f"LLM raw response: {output_text}")
    return output_text
