"""
Gemini generateContent client.

POST /v1beta/models/{model}:generateContent?key=...
{
    "contents": [{"role": "user", "parts": [{"text": "..."}]}],
    "systemInstruction": {"parts": [{"text": "..."}]},
    "generationConfig": {"temperature": 0.7, "topK": 40, "topP": 0.95,
                         "maxOutputTokens": 2048}
}

The generated text lives at candidates[0].content.parts[*].text.
"""

from typing import Optional

import structlog

from tour_resolver.sources.base_client import BaseSourceClient
from tour_resolver.sources.exceptions import SourceResponseError

logger = structlog.get_logger(__name__)


class GeminiClient(BaseSourceClient):
    """Text generation with a Gemini model."""

    source_name = "language_model"

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_key: str = "",
        model: str = "gemini-1.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        top_k: int = 40,
        top_p: float = 0.95,
        **kwargs,
    ):
        super().__init__(base_url, api_key, **kwargs)
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.top_k = top_k
        self.top_p = top_p

    def build_payload(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> dict:
        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature if temperature is None else temperature,
                "topK": self.top_k,
                "topP": self.top_p,
                "maxOutputTokens": max_output_tokens or self.max_output_tokens,
            },
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return payload

    @staticmethod
    def extract_text(data: dict) -> str:
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason") if isinstance(data, dict) else None
            raise SourceResponseError(
                "model returned no candidates",
                source=GeminiClient.source_name,
                details={"block_reason": block_reason},
            )
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise SourceResponseError(
                "model returned empty text",
                source=GeminiClient.source_name,
                details={"finish_reason": candidates[0].get("finishReason")},
            )
        return text

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate text for ``prompt``.

        Returns:
            The concatenated text of the first candidate

        Raises:
            SourceResponseError: no candidates or empty text
            SourceError: transport or HTTP failures
        """
        self._require_api_key()
        payload = self.build_payload(prompt, system_instruction, temperature, max_output_tokens)
        logger.debug(
            "Sending generation request",
            model=self.model,
            prompt_length=len(prompt),
            temperature=payload["generationConfig"]["temperature"],
        )
        data = await self._request(
            "POST",
            f"/v1beta/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json=payload,
        )
        return self.extract_text(data)
