"""
JSON extraction and parsing of model output.

Tolerates Markdown fences and chatter around the payload; the result must
be a JSON object. A bare top-level array is accepted as {"landmarks": [...]}
since models sometimes drop the wrapper.
"""

import json

import structlog

from tour_resolver.sources.text_utils import extract_json_block
from tour_resolver.validation.exceptions import JSONParseError

logger = structlog.get_logger(__name__)


def parse_json_payload(content: str) -> dict:
    """
    Parse model output into a dict.

    Raises:
        JSONParseError: empty, malformed, or not an object/array
    """
    if not content or not content.strip():
        raise JSONParseError("model output is empty", raw_content=content, parse_error="Empty content")

    payload = extract_json_block(content)
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise JSONParseError(
            f"model output is not valid JSON: {e.msg}",
            raw_content=content,
            parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
        ) from e

    if isinstance(parsed, list):
        logger.debug("Wrapping top-level JSON array", items=len(parsed))
        parsed = {"landmarks": parsed}
    if not isinstance(parsed, dict):
        raise JSONParseError(
            f"model output is not a JSON object (got {type(parsed).__name__})",
            raw_content=content,
            parse_error=f"Expected dict, got {type(parsed).__name__}",
        )
    return parsed
