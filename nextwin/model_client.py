# nextwin/model_client.py
"""
Gemini text generation client.

Calls the Generative Language REST API with httpx. One attempt per call;
the timeout is the only bound on latency. Output is free-form text and
must be validated by the caller.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEMPERATURE = 0.4


# =============================================================================
# Exceptions
# =============================================================================


class ModelError(Exception):
    """Base exception for model service errors."""
    pass


class ModelConfigurationError(ModelError):
    """Raised when the model service is misconfigured (e.g., missing API key)."""
    pass


class ModelUnavailableError(ModelError):
    """Raised when the model service cannot be reached or times out."""
    pass


class ModelAPIError(ModelError):
    """Raised when the model service returns a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ModelResponseError(ModelError):
    """Raised when a 2xx response is malformed or carries no candidate text."""
    pass


# =============================================================================
# Result
# =============================================================================


@dataclass
class ModelCompletion:
    """Text returned by the model plus any web sources it cited."""
    text: str
    sources: List[Tuple[str, str]] = field(default_factory=list)  # (title, uri)


# =============================================================================
# Client
# =============================================================================


class GeminiClient:
    """
    Minimal async client for `models/{model}:generateContent`.

    A transport can be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: str = GEMINI_API_BASE,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._base_url = base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_payload(
        self,
        prompt: str,
        system_instruction: Optional[str],
        use_search: bool,
    ) -> dict:
        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": DEFAULT_TEMPERATURE},
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if use_search:
            payload["tools"] = [{"google_search": {}}]
        else:
            # JSON mode is not accepted together with the search tool
            payload["generationConfig"]["responseMimeType"] = "application/json"
        return payload

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        use_search: bool = False,
    ) -> ModelCompletion:
        """
        Generate a completion for a prompt.

        Raises:
            ModelConfigurationError: If no API key is configured
            ModelUnavailableError: On network failure or timeout
            ModelAPIError: If the API returns a non-2xx status
            ModelResponseError: If the response has no text
        """
        if not self.is_configured:
            raise ModelConfigurationError("GEMINI_API_KEY environment variable is not set.")

        url = f"{self._base_url}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = self._build_payload(prompt, system_instruction, use_search)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise ModelUnavailableError(
                f"Model request timed out after {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise ModelUnavailableError(f"Model request failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            error_detail = response.text
            try:
                error_detail = response.json().get("error", {}).get("message", response.text)
            except (ValueError, AttributeError):
                pass
            raise ModelAPIError(
                f"Gemini API error: {error_detail}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ModelResponseError("Gemini API returned a non-JSON body") from e

        return _parse_completion(body)


def _parse_completion(body: Any) -> ModelCompletion:
    """
    Pull candidate text and grounding sources out of a response body.

    Raises:
        ModelResponseError: If the body is not the expected shape or has no text
    """
    candidates = body.get("candidates") if isinstance(body, dict) else None
    if not isinstance(candidates, list) or not candidates:
        raise ModelResponseError("Gemini API returned no candidates")

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise ModelResponseError("Gemini API returned a malformed candidate")
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise ModelResponseError("Gemini API returned a candidate without parts")

    text = "".join(
        part.get("text") or ""
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text") or "", str)
    )
    if not text.strip():
        raise ModelResponseError("Gemini API returned an empty candidate")

    sources = []
    metadata = candidate.get("groundingMetadata")
    chunks = metadata.get("groundingChunks") if isinstance(metadata, dict) else None
    for chunk in chunks if isinstance(chunks, list) else []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if isinstance(web, dict) and isinstance(web.get("uri"), str) and web["uri"]:
            title = web.get("title")
            sources.append((title if isinstance(title, str) else "", web["uri"]))

    return ModelCompletion(text=text, sources=sources)


# =============================================================================
# JSON Extraction
# =============================================================================

_SPANS = {dict: ("{", "}"), list: ("[", "]")}


def _strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def extract_json(text: str, expect: Optional[type] = None) -> Any:
    """
    Parse the JSON value in a model reply.

    Tries the whole reply (minus Markdown fences) first, then the outermost
    {...} or [...] span for replies with chatter around the JSON, starting
    with whichever bracket opens first. With `expect` (dict or list) only a
    value of that type is returned, so a "[1]" citation inside an object's
    text cannot stand in for the object.

    Raises:
        ValueError: If no JSON value of the expected type can be parsed
    """
    content = _strip_code_fences(text or "")
    wanted = (expect,) if expect is not None else (dict, list)

    try:
        value = json.loads(content)
    except json.JSONDecodeError:
        pass
    else:
        if expect is None or isinstance(value, expect):
            return value

    spans = []
    for kind in wanted:
        open_char, close_char = _SPANS[kind]
        start = content.find(open_char)
        end = content.rfind(close_char)
        if start != -1 and end > start:
            spans.append((start, end, kind))

    for start, end, kind in sorted(spans):
        try:
            value = json.loads(content[start:end + 1])
        except json.JSONDecodeError:
            continue
        if isinstance(value, kind):
            return value

    logger.debug(f"Unparseable model reply: {content[:200]!r}")
    raise ValueError("model reply is not valid JSON")
