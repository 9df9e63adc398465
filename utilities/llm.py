import logging
import time
from typing import Optional

import requests

import config
from errors import ThrottledError, UpstreamGenerationError

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert interview coach and question generator. "
    "Generate high-quality, relevant interview questions based on the provided context. "
    "Focus on practical, real-world scenarios that assess both technical skills and soft skills. "
    "Return responses in the exact format requested."
)


def _build_request(prompt: str, system_instruction: Optional[str] = None):
    """Build request headers and JSON payload for the LLM endpoint.

    The payload matches the structure expected by Google/Gemini-style APIs:
    {
      "contents": [ { "parts": [ { "text": <prompt> } ] } ]
    }

    Keeping this centralized ensures the structure stays in sync with
    `_extract_text()` which parses the corresponding response shape.

    Args:
        prompt: The prompt/question to send to the model.
        system_instruction: Optional system prompt sent alongside the contents.

    Returns:
        A tuple of (headers, data) ready to pass to requests.post.
    """
    headers = {'Content-Type': 'application/json'}
    data = {'contents': [{'parts': [{'text': prompt}]}]}
    if system_instruction:
        data['systemInstruction'] = {'parts': [{'text': system_instruction}]}
    return headers, data


def _extract_text(response_json: dict) -> Optional[str]:
    """Extract plain text from a Gemini-style response JSON.

    Expected shape (minimal):
    {
      "candidates": [
        { "content": { "parts": [ { "text": "..." } ] } }
      ]
    }

    Returns None if any of the expected keys/arrays are missing/empty,
    otherwise the stripped text.
    """
    if not isinstance(response_json, dict):
        return None
    candidates = response_json.get('candidates') or []
    if not candidates:
        return None
    candidate = candidates[0]
    content = candidate.get('content') or {}
    parts = content.get('parts') or []
    if not parts:
        return None
    text = parts[0].get('text')
    return text.strip() if isinstance(text, str) else None


def _backoff_sleep(attempt: int, base_delay: float) -> None:
    """Sleep `base_delay * 2 ** attempt` seconds (1s, 2s, ... for base 1)."""
    wait_time = max(0.0, base_delay * (2 ** attempt))
    if wait_time:
        logger.warning("Gemini rate limit hit, retrying in %.1f seconds (attempt %d)", wait_time, attempt + 1)
        time.sleep(wait_time)


class GeminiClient:
    """Thin client for the Gemini `generateContent` REST endpoint.

    `generate()` returns the model text or raises:
    - ThrottledError when upstream kept answering HTTP 429 after all retries,
    - RateLimitExceeded (from the injected limiter) before any request is made,
    - UpstreamGenerationError for every other failure (not retried).
    """

    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None,
                 rate_limiter=None, max_retries: Optional[int] = None,
                 backoff_base: Optional[float] = None, timeout: Optional[int] = None,
                 system_instruction: str = SYSTEM_INSTRUCTION):
        self.api_key = api_key if api_key is not None else config.API_KEY
        self.api_url = api_url or config.API_URL
        self.rate_limiter = rate_limiter
        self.max_retries = config.AI_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base = config.AI_BACKOFF_BASE if backoff_base is None else backoff_base
        self.timeout = timeout or config.AI_TIMEOUT_SECONDS
        self.system_instruction = system_instruction

    def generate(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        if not self.api_key:
            raise UpstreamGenerationError('GEMINI_API_KEY is not configured')

        headers, data = _build_request(prompt, system_instruction or self.system_instruction)

        for attempt in range(self.max_retries + 1):
            if self.rate_limiter is not None:
                self.rate_limiter.acquire()
            try:
                resp = requests.post(self.api_url, headers=headers, json=data, timeout=self.timeout)
                resp.raise_for_status()
            except requests.exceptions.HTTPError as e:
                status = getattr(e.response, 'status_code', None)
                if status == 429:
                    if attempt < self.max_retries:
                        _backoff_sleep(attempt, self.backoff_base)
                        continue
                    raise ThrottledError(f"API rate limited after {attempt + 1} attempts") from e
                error_text = getattr(e.response, 'text', '')
                raise UpstreamGenerationError(f"API request failed with status {status}: {error_text[:200]}") from e
            except requests.RequestException as e:
                raise UpstreamGenerationError(f"Request failed: {e}") from e

            try:
                payload = resp.json()
            except ValueError as e:
                raise UpstreamGenerationError('API returned a non-JSON body') from e
            text = _extract_text(payload)
            if not text:
                raise UpstreamGenerationError(f"Unexpected API response format: {resp.text[:200]}")
            return text

        # Loop always returns or raises; kept as a safeguard
        raise ThrottledError('Exhausted retries without a successful response')
