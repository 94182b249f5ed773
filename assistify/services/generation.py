"""
Generation service: wraps the OpenRouter chat-completions endpoint.

One request per call: a system instruction plus the user's question, sent
with the configured model, temperature and max_tokens. The call is bounded
by settings.generation_timeout_seconds. The API key never appears in a log
line or an error payload; remote error bodies are redacted before use.

The response body is classified into one of a few reply shapes
(CompletionReply); a body with no usable text becomes EmptyReply, which
renders as FALLBACK_ANSWER.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from assistify.config import Settings
from assistify.errors import GenerationNotConfigured, UpstreamAuthError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "Respond in plain text only. Do NOT use bullet points, '*', '-', '+', "
    "Markdown, or formatting. Use plain sentences only."
)
FALLBACK_ANSWER = "Sorry, I could not generate an answer at this time."

_REDACTED = "***"
_AUTH_FAILED_MESSAGE = (
    "Failed to generate answer from OpenRouter - authentication failed (401). "
    "Verify OPENROUTER_API_KEY and model permissions on server."
)


# ── Reply shapes ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MessageReply:
    """choices[0].message.content"""

    text: str


@dataclass(frozen=True)
class TextReply:
    """choices[0].text (legacy completions shape)"""

    text: str


@dataclass(frozen=True)
class DeltaReply:
    """choices[0].delta.content (a streamed chunk returned whole)"""

    text: str


@dataclass(frozen=True)
class OutputReply:
    """Top-level "output" field, a string or a list of strings."""

    text: str


@dataclass(frozen=True)
class EmptyReply:
    """Nothing extractable."""


CompletionReply = Union[MessageReply, TextReply, DeltaReply, OutputReply, EmptyReply]


def _content_text(content: Any) -> Optional[str]:
    """Return the text of a message content field (string or list of parts)."""
    if isinstance(content, str):
        return content or None
    if isinstance(content, list):
        parts = [
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        ]
        joined = "".join(p for p in parts if isinstance(p, str))
        return joined or None
    return None


def classify_completion(payload: Any) -> CompletionReply:
    """Map a chat-completions response body onto a CompletionReply variant."""
    if not isinstance(payload, dict):
        return EmptyReply()

    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if not isinstance(first, dict):
            return EmptyReply()

        message = first.get("message")
        if isinstance(message, dict):
            text = _content_text(message.get("content"))
            if text:
                return MessageReply(text)

        text = _content_text(first.get("text"))
        if text:
            return TextReply(text)

        delta = first.get("delta")
        if isinstance(delta, dict):
            text = _content_text(delta.get("content"))
            if text:
                return DeltaReply(text)
        return EmptyReply()

    output = payload.get("output")
    if isinstance(output, list) and output:
        return OutputReply("\n".join(str(item) for item in output))
    if output and not isinstance(output, (dict, list)):
        return OutputReply(str(output))
    return EmptyReply()


def reply_text(reply: CompletionReply) -> str:
    """Return the answer text for a reply; EmptyReply yields FALLBACK_ANSWER."""
    if isinstance(reply, EmptyReply):
        return FALLBACK_ANSWER
    return reply.text


def _remote_error_code(body: Any) -> Any:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("code")
    return None


# ── Client ───────────────────────────────────────────────────────────────────


class CompletionClient:
    """Async client for one chat-completions endpoint."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._settings.generation_configured

    @property
    def model(self) -> str:
        return self._settings.openrouter_model

    def build_payload(self, question: str, system_prompt: Optional[str] = None) -> dict[str, Any]:
        """Build the request body; a non-empty string system_prompt overrides the default."""
        instruction = (
            system_prompt
            if isinstance(system_prompt, str) and system_prompt.strip()
            else DEFAULT_SYSTEM_PROMPT
        )
        return {
            "model": self._settings.openrouter_model,
            "messages": [
                {"role": "system", "content": instruction},
                {"role": "user", "content": question},
            ],
            "temperature": self._settings.openrouter_temperature,
            "max_tokens": self._settings.openrouter_max_tokens,
        }

    def _redact(self, value: Any) -> Any:
        """Replace every occurrence of the API key in a (nested) value."""
        key = self._api_key()
        if not key:
            return value
        if isinstance(value, str):
            return value.replace(key, _REDACTED)
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._redact(v) for v in value]
        return value

    def _api_key(self) -> str:
        secret = self._settings.openrouter_api_key
        return secret.get_secret_value().strip() if secret else ""

    @staticmethod
    def _response_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        timeout = self._settings.generation_timeout_seconds
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.post(
                self._settings.openrouter_url,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._api_key()}",
                },
            )
        response.raise_for_status()
        return response

    async def generate(self, question: str, system_prompt: Optional[str] = None) -> str:
        """
        Ask the model to answer a question and return the raw answer text.

        Raises GenerationNotConfigured when no key is set (no request is made),
        UpstreamAuthError when the endpoint rejects the key, and UpstreamError
        on timeout, transport failure or any other non-2xx status.
        """
        if not self.configured:
            raise GenerationNotConfigured("OpenRouter API key not configured on server")

        body = self.build_payload(question, system_prompt)
        timeout = self._settings.generation_timeout_seconds

        try:
            response = await asyncio.wait_for(self._post(body), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.error("OpenRouter request timed out after %.1fs", timeout)
            raise UpstreamError(
                "Failed to generate answer from OpenRouter - request timed out",
                diagnostic=f"timeout after {timeout:g}s",
            ) from exc
        except httpx.HTTPStatusError as exc:
            remote = self._redact(self._response_body(exc.response))
            logger.error(
                "OpenRouter API error %d (remote body): %s",
                exc.response.status_code,
                remote,
            )
            if exc.response.status_code == 401 or _remote_error_code(remote) == 401:
                raise UpstreamAuthError(_AUTH_FAILED_MESSAGE, diagnostic=remote) from exc
            raise UpstreamError(
                "Failed to generate answer from OpenRouter", diagnostic=remote
            ) from exc
        except httpx.HTTPError as exc:
            detail = self._redact(str(exc)) or exc.__class__.__name__
            logger.error("OpenRouter request failed: %s", detail)
            raise UpstreamError(
                "Failed to generate answer from OpenRouter", diagnostic=detail
            ) from exc

        payload = self._response_body(response)
        if _remote_error_code(payload) == 401:
            raise UpstreamAuthError(
                _AUTH_FAILED_MESSAGE, diagnostic=self._redact(payload)
            )

        reply = classify_completion(payload)
        if isinstance(reply, EmptyReply):
            logger.warning("OpenRouter returned no usable answer text (model=%s)", self.model)
        else:
            logger.debug("OpenRouter reply (%s): %s", type(reply).__name__, reply.text)
        return reply_text(reply)
