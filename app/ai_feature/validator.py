import json
import logging
import re

from app.core import errors, schemas

logger = logging.getLogger(__name__)

# The whole text must be one ```json ... ``` block; partial fences are kept
_CODE_FENCE = re.compile(r"\A\s*```json\s*(.*?)\s*```\s*\Z", re.DOTALL)


def strip_code_fence(raw: str) -> str:
    match = _CODE_FENCE.match(raw)
    if match is None:
        return raw
    return match.group(1)


def parse_llm_output(raw: str) -> schemas.StructuredQuery:
    """
    Turn model text into a StructuredQuery.

    This is a shape check only: queryText must be a non-empty string and
    variables an object (empty is fine). Bad JSON and missing fields raise the
    same InvalidLLMOutput, on purpose. Whether the query stays inside the
    published schema is decided when it is executed.
    """
    try:
        parsed = json.loads(strip_code_fence(raw))
    except (TypeError, ValueError):
        logger.error("LLM did not return valid JSON")
        raise errors.InvalidLLMOutput("LLM did not return valid JSON") from None

    query_text = parsed.get("queryText") if isinstance(parsed, dict) else None
    variables = parsed.get("variables") if isinstance(parsed, dict) else None

    if not query_text or not isinstance(query_text, str) or not isinstance(
        variables, dict
    ):
        logger.error(f"Invalid structure from LLM: {parsed!r}")
        raise errors.InvalidLLMOutput("LLM did not return valid JSON")

    return schemas.StructuredQuery(queryText=query_text, variables=variables)
