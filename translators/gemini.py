"""Google Gemini translation service using structured JSON output."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp

from config.constants import GEMINI_API_URL, GEMINI_TIMEOUT_SECONDS, SAFETY_CATEGORIES
from utils.errors import TranslationCallError
from .base import BaseTranslator, TranslationResponse

logger = logging.getLogger(__name__)


@dataclass
class TranslationStats:
    """Track translation statistics."""
    total_requests: int = 0
    failed_requests: int = 0
    total_input_tokens: int = 0
    total_thought_tokens: int = 0
    total_output_tokens: int = 0
    avg_response_time: float = 0.0

    def record_success(self, input_tokens: int, thought_tokens: int, output_tokens: int, response_time: float):
        self.total_requests += 1
        self.total_input_tokens += input_tokens
        self.total_thought_tokens += thought_tokens
        self.total_output_tokens += output_tokens
        # Exponential moving average
        if self.avg_response_time == 0:
            self.avg_response_time = response_time
        else:
            self.avg_response_time = 0.9 * self.avg_response_time + 0.1 * response_time

    def record_failure(self):
        self.total_requests += 1
        self.failed_requests += 1


class GeminiTranslatorService(BaseTranslator):
    """
    Gemini generateContent client.

    Every request asks for a JSON response matching the given schema, carries
    the configured thinking budget and disables all safety filters. Requests
    may take many minutes for large batches; failures are not retried.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        thinking_tokens: int = 0,
        api_url: str = GEMINI_API_URL,
        timeout: float = GEMINI_TIMEOUT_SECONDS,
    ):
        super().__init__(api_key, timeout)
        self.model = model
        self.thinking_tokens = thinking_tokens
        self.api_url = api_url

        self._stats = TranslationStats()

    async def initialize(self):
        """Initialize Gemini translator."""
        if not self.api_key:
            raise TranslationCallError("Gemini translator requires an API key.")
        await self._init_http_session()
        logger.info(
            f"Gemini translator initialized: model={self.model}, "
            f"thinking_tokens={self.thinking_tokens}"
        )

    def _build_payload(self, prompt: str, schema: Dict) -> Dict:
        """Create the generateContent request body."""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
                "thinkingConfig": {
                    "includeThoughts": False,
                    "thinkingBudget": self.thinking_tokens,
                },
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"}
                for category in SAFETY_CATEGORIES
            ],
        }

    @staticmethod
    def _parse_response(result: Dict) -> TranslationResponse:
        """Extract text, finish reason and token usage from a response body."""
        if not isinstance(result, dict):
            raise TranslationCallError(
                f"Gemini API returned an unexpected body: {type(result).__name__}"
            )

        usage_metadata = result.get('usageMetadata') or {}
        usage = {
            'input': usage_metadata.get('promptTokenCount', 0),
            'thoughts': usage_metadata.get('thoughtsTokenCount', 0),
            'output': usage_metadata.get('candidatesTokenCount', 0),
        }

        candidates = result.get('candidates') or []
        if not candidates:
            block_reason = (result.get('promptFeedback') or {}).get('blockReason')
            return TranslationResponse(text="", finish_reason=block_reason, usage=usage)

        candidate = candidates[0]
        parts = (candidate.get('content') or {}).get('parts') or []
        text = "".join(p.get('text', '') for p in parts if not p.get('thought'))

        return TranslationResponse(
            text=text,
            finish_reason=candidate.get('finishReason'),
            usage=usage,
        )

    async def send(self, prompt: str, schema: Dict) -> TranslationResponse:
        """Make a single generateContent request (no retries)."""
        if self.http_session is None:
            await self.initialize()

        start_time = time.time()
        url = self.api_url.format(model=self.model)
        headers = {"x-goog-api-key": self.api_key}
        payload = self._build_payload(prompt, schema)

        try:
            async with self.http_session.post(url, json=payload, headers=headers) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TranslationCallError(f"Gemini API error {response.status}: {error_text}")
                result = await response.json(content_type=None)
            parsed = self._parse_response(result)
        except TranslationCallError:
            self._stats.record_failure()
            raise
        except asyncio.TimeoutError as e:
            self._stats.record_failure()
            raise TranslationCallError(f"Gemini API request timed out after {self.timeout:.0f}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            self._stats.record_failure()
            raise TranslationCallError(f"Gemini API request failed: {e}") from e

        elapsed = time.time() - start_time
        self._stats.record_success(
            parsed.usage['input'], parsed.usage['thoughts'], parsed.usage['output'], elapsed
        )

        logger.debug(
            f"Token usage\n"
            f"    Input: {parsed.usage['input']}\n"
            f"    Thoughts: {parsed.usage['thoughts']}\n"
            f"    Output: {parsed.usage['output']}"
        )

        return parsed

    def get_stats(self) -> Dict:
        """Get translation statistics."""
        return {
            'total_requests': self._stats.total_requests,
            'failed_requests': self._stats.failed_requests,
            'total_input_tokens': self._stats.total_input_tokens,
            'total_thought_tokens': self._stats.total_thought_tokens,
            'total_output_tokens': self._stats.total_output_tokens,
            'avg_response_time': f"{self._stats.avg_response_time:.3f}s",
        }

    async def cleanup(self):
        """Cleanup resources."""
        await super().cleanup()

        if self._stats.total_requests > 0:
            logger.info(
                f"Gemini stats: {self._stats.total_requests - self._stats.failed_requests}/"
                f"{self._stats.total_requests} requests succeeded, "
                f"tokens: {self._stats.total_input_tokens}+{self._stats.total_thought_tokens}"
                f"+{self._stats.total_output_tokens}"
            )
