"""
Landmark suggestion service.

Asks the language model for landmark candidates for a destination, validates
the JSON it returns, and renders the tour-guide system prompt. Every failure
here is fatal for the tour and surfaces as SuggestionError.
"""

from typing import Any, Iterable, Optional

import structlog

from tour_resolver.models.enums import SourceName
from tour_resolver.models.landmark_models import LandmarkCandidate, LandmarkSuggestions
from tour_resolver.resolution.exceptions import SuggestionError
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.retry.exceptions import RetryExhausted
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.prompt_builder import PromptBuilder
from tour_resolver.sources.text_utils import normalize_name
from tour_resolver.validation.exceptions import ValidationError
from tour_resolver.validation.json_parse import parse_json_payload
from tour_resolver.validation.schema import SuggestionSchemaValidator

logger = structlog.get_logger(__name__)


def normalize_candidates(items: Iterable[dict[str, Any]], limit: Optional[int] = None) -> list[LandmarkCandidate]:
    """
    Build candidates from raw suggestion items.

    Drops blank names, de-duplicates names case-insensitively (first wins)
    and removes alternative names that repeat the primary name.
    """
    seen: set[str] = set()
    candidates: list[LandmarkCandidate] = []
    for item in items:
        name = " ".join(str(item.get("name") or "").split())
        key = normalize_name(name)
        if not key or key in seen:
            continue
        seen.add(key)

        alternatives: list[str] = []
        alt_seen = {key}
        for alt in item.get("alternative_names") or []:
            alt = " ".join(str(alt).split())
            alt_key = normalize_name(alt)
            if alt_key and alt_key not in alt_seen:
                alt_seen.add(alt_key)
                alternatives.append(alt)

        candidates.append(
            LandmarkCandidate(
                name=name,
                alternative_names=alternatives,
                description=str(item.get("description") or "").strip(),
                category=str(item.get("category") or "landmark").strip() or "landmark",
            )
        )
        if limit is not None and len(candidates) >= limit:
            break
    return candidates


class LandmarkSuggestionService:
    """Produce landmark candidates and the guide prompt for a destination."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        prompt_builder: PromptBuilder,
        retry_engine: RetryEngine,
        schema_validator: Optional[SuggestionSchemaValidator] = None,
        max_candidates: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        self.gemini_client = gemini_client
        self.prompt_builder = prompt_builder
        self.retry_engine = retry_engine
        self.schema_validator = schema_validator or SuggestionSchemaValidator()
        self.max_candidates = max_candidates
        self.temperature = temperature

    async def suggest(self, destination: str) -> LandmarkSuggestions:
        """
        Suggest landmarks for ``destination``.

        Raises:
            SuggestionError: model unreachable after retries, or unusable output
        """
        system_instruction = self.prompt_builder.build_suggestion_system_prompt(destination)
        prompt = self.prompt_builder.build_suggestion_prompt(destination)

        async def generate() -> str:
            return await self.gemini_client.generate(
                prompt, system_instruction=system_instruction, temperature=self.temperature
            )

        result = await self.retry_engine.execute_with_retry(generate, SourceName.LANGUAGE_MODEL)
        try:
            text = result.unwrap()
        except RetryExhausted as e:
            raise SuggestionError(
                f"suggestion service failed: {e}",
                details={
                    "destination": destination,
                    "attempts": result.attempts,
                    **e.result.categorized_error.log_context(),
                },
                category=e.category,
            ) from e

        try:
            data = parse_json_payload(text)
            self.schema_validator.validate(data)
        except ValidationError as e:
            logger.error("Suggestion output rejected", destination=destination, error=e.message, **e.details)
            raise SuggestionError(
                f"suggestion output rejected: {e.message}",
                details={"destination": destination, **e.details},
            ) from e

        candidates = normalize_candidates(data["landmarks"], self.max_candidates)
        if not candidates:
            raise SuggestionError("suggestion output contained no usable landmarks", details={"destination": destination})

        logger.info(
            "Landmark suggestions received",
            destination=destination,
            candidates=len(candidates),
            with_alternatives=sum(1 for c in candidates if c.alternative_names),
        )
        return LandmarkSuggestions(
            destination=destination,
            landmarks=candidates,
            guide_system_prompt=self.prompt_builder.build_guide_system_prompt(destination, candidates),
        )
