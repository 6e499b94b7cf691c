"""
StoryGen API Clients

HTTP client for the Google Gemini generateContent API and the chat backend
built on top of it.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib import error, request

from storygen.core.config import BackendConfig
from storygen.core.env_loader import get_api_key, get_gemini_api_key
from storygen.core.exceptions import LLMProviderError, LLMResponseError, MissingConfigError
from storygen.core.logging_config import get_logger
from .backend import ChatReply, ChatTurn

logger = get_logger("llm.api_clients")


# ============================================================================
#  EXCEPTIONS
# ============================================================================

class APIError(Exception):
    """Base exception for API errors."""
    def __init__(self, message: str, status_code: int = None, response: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""
    pass


class APITimeoutError(APIError):
    """Raised when API request times out."""
    pass


# ============================================================================
#  RESPONSE TYPES
# ============================================================================

@dataclass
class TextResponse:
    """Response from text generation API."""
    text: str
    model: str
    usage: Optional[Dict] = None
    raw_response: Optional[Dict] = None


# ============================================================================
#  BASE CLIENT
# ============================================================================

class BaseAPIClient:
    """Base class for API clients with common functionality."""

    MODEL_DISPLAY_NAME = "API"

    def __init__(self, api_key: str, timeout: int = None, max_retries: int = 3,
                 retry_delay: float = 10.0):
        if not api_key:
            raise ValueError(f"{self.__class__.__name__} requires an API key")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def _make_request(self, url: str, body: Dict, headers: Dict,
                      method: str = "POST") -> Dict:
        """Make HTTP request with error handling and retries on 5xx."""
        data = json.dumps(body).encode("utf-8")

        for attempt in range(self.max_retries):
            req = request.Request(url, data=data, headers=headers, method=method)
            try:
                with request.urlopen(req, timeout=self.timeout) as resp:
                    return json.loads(resp.read().decode("utf-8"))
            except error.HTTPError as e:
                msg = e.read().decode("utf-8", errors="ignore")
                if e.code >= 500 and attempt < self.max_retries - 1:
                    wait_time = self.retry_delay * (attempt + 1)
                    logger.warning(f"{self.MODEL_DISPLAY_NAME} server error ({e.code}). "
                                   f"Retrying in {wait_time}s...")
                    time.sleep(wait_time)
                    continue
                if e.code == 429:
                    raise RateLimitError(f"HTTP 429: {msg}", e.code, msg)
                raise APIError(f"HTTP {e.code}: {msg}", e.code, msg)
            except error.URLError as e:
                if "timed out" in str(e.reason).lower():
                    raise APITimeoutError(f"Request timed out: {e.reason}")
                raise APIError(f"URL error: {e.reason}")

        raise APIError(f"{self.MODEL_DISPLAY_NAME} request failed after {self.max_retries} attempts")


# ============================================================================
#  GEMINI CLIENT
# ============================================================================

class GeminiClient(BaseAPIClient):
    """Client for Google Gemini API."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    MODEL_DISPLAY_NAME = "Gemini"
    TEXT_MODEL = "gemini-2.0-flash-exp"

    def __init__(self, api_key: str = None, timeout: int = None, max_retries: int = 3,
                 base_url: str = None):
        api_key = api_key or get_gemini_api_key()
        super().__init__(api_key, timeout, max_retries)
        self.base_url = base_url or self.BASE_URL

    def _get_headers(self) -> Dict:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }

    def generate_content(self, contents: List[Dict], model: str = None,
                         temperature: float = 0.7, max_tokens: int = 8192,
                         system_instruction: str = None) -> TextResponse:
        """Generate a reply to a list of conversation contents."""
        model = model or self.TEXT_MODEL
        url = f"{self.base_url}/{model}:generateContent"

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens
            }
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        result = self._make_request(url, body, self._get_headers())

        candidates = result.get("candidates", [])
        block_reason = result.get("promptFeedback", {}).get("blockReason")
        if not candidates and block_reason:
            raise LLMResponseError(
                f"Gemini blocked the prompt: {block_reason}",
                {"model": model, "block_reason": block_reason}
            )

        text = ""
        if candidates:
            for part in candidates[0].get("content", {}).get("parts", []):
                if "text" in part:
                    text += part["text"]

        metadata = result.get("usageMetadata", {})
        usage = {
            "input_tokens": metadata.get("promptTokenCount", 0),
            "output_tokens": metadata.get("candidatesTokenCount", 0),
        }
        return TextResponse(text=text, model=model, usage=usage, raw_response=result)

    def generate_text(self, prompt: str, temperature: float = 0.7,
                      max_tokens: int = 8192, model: str = None) -> TextResponse:
        """Generate text from a single prompt."""
        return self.generate_content(
            [ChatTurn("user", prompt).to_dict()],
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )


# ============================================================================
#  CHAT BACKEND
# ============================================================================

class GeminiChatSession:
    """Multi-turn Gemini conversation; history is resent on every call."""

    def __init__(self, client: GeminiClient, model: str, history: List[ChatTurn] = None,
                 temperature: float = 0.7, max_tokens: int = 8192):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._contents: List[Dict] = [turn.to_dict() for turn in (history or [])]

    @property
    def turn_count(self) -> int:
        return len(self._contents)

    async def send_message(self, text: str) -> ChatReply:
        """Send a user turn; the turn is kept only if the backend answers."""
        contents = self._contents + [ChatTurn("user", text).to_dict()]
        response = await asyncio.to_thread(
            self.client.generate_content,
            contents,
            self.model,
            self.temperature,
            self.max_tokens,
        )
        self._contents = contents + [ChatTurn("model", response.text).to_dict()]
        return ChatReply(
            text=response.text,
            model=response.model,
            usage=response.usage or {},
            raw_response=response.raw_response,
        )


class GeminiChatBackend:
    """ChatBackend backed by the Gemini REST API."""

    def __init__(self, client: GeminiClient, temperature: float = 0.7, max_tokens: int = 8192):
        self.client = client
        self.temperature = temperature
        self.max_tokens = max_tokens

    def start_chat(self, model: str, history: List[ChatTurn]) -> GeminiChatSession:
        return GeminiChatSession(
            self.client,
            model,
            history,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


def create_backend(config: BackendConfig) -> GeminiChatBackend:
    """Build the chat backend described by `config`."""
    if config.provider != "gemini":
        raise LLMProviderError(config.provider, "unsupported backend provider")
    fallbacks = [name for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY") if name != config.api_key_env]
    api_key = get_api_key(config.api_key_env, fallbacks)
    if not api_key:
        raise MissingConfigError(
            f"No API key found in {config.api_key_env} (or {', '.join(fallbacks)})"
        )
    client = GeminiClient(
        api_key=api_key,
        timeout=config.timeout,
        max_retries=config.max_retries,
        base_url=config.base_url,
    )
    return GeminiChatBackend(client, temperature=config.temperature, max_tokens=config.max_tokens)
