# commandgpt/ai/parser.py
import json
import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from commandgpt.errors import ParseError
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```json\s*(.*?)```", re.DOTALL)
_FENCED_PLAIN = re.compile(r"```\s*(.*?)```", re.DOTALL)


class CommandResponse(BaseModel):
    """Command suggestion returned by the LLM."""
    command: str = Field(..., description="The suggested shell command")
    explanation: str = Field("", description="Explanation of what the command does")
    auto_execute: bool = Field(False, description="Whether the model considers the command harmless")


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False
    return True


def extract_json(content: str) -> str:
    """
    Extract a JSON document from an LLM reply.

    Tried in order: the whole reply, a ```json fenced block, a plain fenced
    block, and the span from the first '{' to the last '}'.

    Raises:
        ParseError: No valid JSON was found.
    """
    stripped = content.strip()
    if _is_json(stripped):
        return stripped

    for fence in (_FENCED_JSON, _FENCED_PLAIN):
        match = fence.search(content)
        if match and _is_json(match.group(1).strip()):
            return match.group(1).strip()

    start, end = content.find("{"), content.rfind("}")
    if start != -1 and start < end:
        candidate = content[start:end + 1]
        if _is_json(candidate):
            return candidate

    raise ParseError(f"Could not extract valid JSON from response: {content}")


def parse_command_response(response_text: str) -> CommandResponse:
    """Parse the LLM reply into a CommandResponse."""
    json_str = extract_json(response_text)
    try:
        response = CommandResponse.model_validate_json(json_str)
    except ValidationError as e:
        logger.error(f"Failed to parse AI response: {e}")
        logger.debug(f"Raw response: {response_text}")
        raise ParseError(f"Failed to parse command response JSON: {e}") from e

    logger.debug(f"Successfully parsed AI response: {response.command}")
    return response
