"""Gemini generative text API client used for LLM fraud analysis"""

import httpx
from fintrack.domain.exceptions import LLMAnalysisError
from fintrack.config import settings


class GeminiClient:
    """Client for the Gemini generateContent endpoint"""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or settings.gemini_api_base
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.llm_timeout_seconds

    async def generate_text(self, prompt: str) -> str:
        """
        Send a single text prompt and return the first candidate's text.

        No retries: callers fall back to rule-based analysis on failure.

        Raises:
            LLMAnalysisError: On timeout, HTTP errors, or a response without text
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    params={"key": self.api_key},
                    json={
                        "contents": [{"parts": [{"text": prompt}]}],
                        "generationConfig": {
                            "temperature": settings.llm_temperature,
                            "maxOutputTokens": settings.llm_max_output_tokens,
                        },
                    },
                )
                response.raise_for_status()
                data = response.json()
                return data["candidates"][0]["content"]["parts"][0]["text"]

            except httpx.TimeoutException as e:
                raise LLMAnalysisError(f"Gemini API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise LLMAnalysisError(f"Gemini API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise LLMAnalysisError(f"Gemini API unreachable: {e}") from e
            except (KeyError, IndexError, ValueError, TypeError) as e:
                raise LLMAnalysisError(f"Invalid response from Gemini: {e}") from e
