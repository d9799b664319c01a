# commandgpt/ai/client.py
"""
Google Gemini client for command generation.
"""
import asyncio
import random  # For jitter in retries
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import GenerationConfig

from commandgpt.ai.context import UserContext
from commandgpt.ai.parser import CommandResponse, parse_command_response
from commandgpt.ai.prompts import build_prompt
from commandgpt.config import ApiConfig
from commandgpt.errors import ApiError, ConfigError, NetworkError
from commandgpt.history import HistoryEntry
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

# Retrying these cannot help
_AUTH_ERRORS = (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)
_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.TooManyRequests,
    ConnectionError,
    TimeoutError,
)


class GeminiClient:
    """Generates command suggestions with the Google Gemini API."""

    def __init__(
        self,
        config: ApiConfig,
        shell: Optional[str] = None,
        user_context: Optional[UserContext] = None,
    ):
        if not config.gemini_api_key:
            logger.error("Gemini API key is not configured.")
            raise ConfigError("Gemini API key is not configured. Set GEMINI_API_KEY or run 'commandgpt init'.")

        self._config = config
        self._shell = shell
        self._user_context = user_context
        genai.configure(api_key=config.gemini_api_key)
        self.model = genai.GenerativeModel(config.model)
        logger.debug(f"Gemini API client initialized with model: {config.model}")

    async def generate_text(self, prompt: str) -> str:
        """
        Send a prompt and return the reply text, retrying transient failures.

        Raises:
            ApiError: The API rejected the request or returned nothing.
            NetworkError: The API stayed unreachable after all retries.
        """
        generation_config = GenerationConfig(
            temperature=self._config.temperature,
            max_output_tokens=self._config.max_tokens,
        )
        last_exception: Optional[Exception] = None

        for attempt in range(self._config.max_retries):
            if attempt > 0:
                delay = 2 ** attempt + random.uniform(0, 0.5)
                logger.debug(f"Retrying request in {delay:.1f}s (attempt {attempt + 1})")
                await asyncio.sleep(delay)

            try:
                response = await asyncio.to_thread(
                    self.model.generate_content,
                    prompt,
                    generation_config=generation_config,
                    request_options={"timeout": self._config.timeout_seconds},
                )
            except _AUTH_ERRORS as e:
                raise ApiError(f"Authentication failed: {e}") from e
            except _TRANSIENT_ERRORS as e:
                logger.warning(f"Request failed (attempt {attempt + 1}): {e}")
                last_exception = e
                continue
            except google_exceptions.GoogleAPICallError as e:
                raise ApiError(str(e)) from e

            try:
                text = response.text
            except ValueError as e:
                # Raised by the SDK when the candidate was blocked or has no parts
                raise ApiError(f"Gemini API returned no usable text: {e}") from e
            if not text:
                raise ApiError("Empty response from Gemini API")
            logger.debug(f"Gemini API response received. Length: {len(text)}")
            return text

        raise NetworkError(f"All retry attempts failed: {last_exception}")

    async def generate_command(
        self,
        request: str,
        last_entry: Optional[HistoryEntry] = None,
    ) -> CommandResponse:
        """Turn a natural-language request into a command suggestion."""
        prompt = build_prompt(
            request, last_entry=last_entry, shell=self._shell, user_context=self._user_context,
        )
        logger.info(f"Sending request to Gemini API: {request}")
        text = await self.generate_text(prompt)
        return parse_command_response(text)
