"""Natural-language querying for acquisitions.

Flow:
1. Reject a missing prompt (the only check before any external call)
2. Ask the model for a {queryText, variables} document
3. Shape-check the document
4. Execute it against the GraphQL schema on a fresh pooled connection
5. Return the executed document next to the result so callers can audit it
"""

import logging
from typing import Any, Dict, Optional

from app.ai_feature import client, validator
from app.ai_feature.prompts import SYSTEM_PROMPT
from app.core import database, errors, graph

logger = logging.getLogger(__name__)


async def answer_prompt(prompt: Optional[str]) -> Dict[str, Any]:
    if not prompt:
        raise errors.ValidationError("Missing prompt")

    logger.debug(f"User prompt: {prompt}")
    raw = await client.run_llm(prompt, SYSTEM_PROMPT)
    document = validator.parse_llm_output(raw)
    logger.info(f"Parsed LLM response: {document.queryText}")

    async with database.connect() as db:
        response = await graph.execute_query(
            document.queryText, document.variables, db
        )

    return {
        "llmGeneratedQuery": document.model_dump(),
        "response": response,
    }


async def handle_prompt(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    HTTP-style wrapper returning {"statusCode", "body"}.

    Only a missing prompt is answered here (400 with a machine-readable body);
    every other failure propagates to the caller.
    """
    prompt = (payload or {}).get("prompt")
    try:
        body = await answer_prompt(prompt)
    except errors.ValidationError as error:
        return {"statusCode": 400, "body": {"error": str(error)}}

    return {"statusCode": 200, "body": body}
