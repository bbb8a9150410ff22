"""
Groq API Client: thin wrapper for invoice suggestion completions.

The LLM only drafts text (titles, items, terms). It never touches the
database or money; callers validate its output and fall back to defaults.
"""

import logging
import time
from typing import List, Optional

from groq import Groq, APIError, APITimeoutError, RateLimitError

from pesaflip.core.config import settings

# NEVER log API keys
logger = logging.getLogger(__name__)


class GroqClient:
    """
    Minimal wrapper for the Groq chat completions API.

    - Retries: timeouts and rate limits, with exponential backoff
    - Permanent API errors: no retry
    - Returns None on any failure so callers can degrade gracefully
    """

    TIMEOUT_SECONDS = 10

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key if api_key is not None else settings.GROQ_API_KEY
        self.model = model or settings.GROQ_MODEL

        if not api_key:
            logger.warning(
                "GROQ_API_KEY not found in environment. "
                "AI invoice suggestions will use defaults. "
                "Add your key to backend/.env file."
            )
            self.client = None
        else:
            try:
                self.client = Groq(api_key=api_key, timeout=self.TIMEOUT_SECONDS)
                logger.info("Groq client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Groq client: {e}")
                self.client = None

    def is_available(self) -> bool:
        return self.client is not None

    def complete(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 256,
        json_mode: bool = False,
        max_retries: int = 2,
    ) -> Optional[str]:
        """
        Run one chat completion.

        Args:
            messages: OpenAI-style [{"role": ..., "content": ...}]
            temperature: sampling temperature
            max_tokens: response cap
            json_mode: ask the model for a single JSON object
            max_retries: retries for transient failures

        Returns:
            Response text, or None on error
        """
        if not self.is_available():
            logger.debug("Groq client not available - skipping LLM call")
            return None

        extra = {"response_format": {"type": "json_object"}} if json_mode else {}

        for attempt in range(max_retries + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    stream=False,
                    **extra,
                )
                if response.choices:
                    content = response.choices[0].message.content or ""
                    logger.debug(f"LLM response received: {len(content)} chars (attempt {attempt + 1})")
                    return content
                logger.warning("LLM returned empty response")
                return None

            except APITimeoutError:
                if attempt < max_retries:
                    wait_time = 0.5 * (2 ** attempt)  # 0.5s, 1s
                    logger.warning(f"Groq timeout, retry {attempt + 1}/{max_retries} after {wait_time}s")
                    time.sleep(wait_time)
                else:
                    logger.warning(f"Groq API timeout after {max_retries} retries")
                    return None

            except RateLimitError:
                if attempt < max_retries:
                    wait_time = 1.0 * (2 ** attempt)  # 1s, 2s
                    logger.warning(f"Groq rate limit, retry {attempt + 1}/{max_retries} after {wait_time}s")
                    time.sleep(wait_time)
                else:
                    logger.warning("Groq API rate limit exceeded after retries")
                    return None

            except APIError as e:
                logger.error(f"Groq API error (permanent): {e}")
                return None

        return None


_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Get or create the shared GroqClient."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
