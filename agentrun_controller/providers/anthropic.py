from __future__ import annotations

"""Anthropic Messages API provider.

``AnthropicProvider`` implements the ``Provider`` protocol with one
``POST /v1/messages`` per call:

- ``system`` messages are sent in the top-level ``system`` field (the last
  one wins), every other message as a single text block.
- ``text`` blocks of the reply are concatenated into ``content``;
  ``tool_use`` blocks become ``ToolCall`` objects.
- Any non-200 status raises ``ProviderError``; calls are never retried.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..agent.models import Message, MessageRole, ProviderResponse, ToolCall
from ..tools.definitions import ToolDefinition
from .errors import ProviderError

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TOP_P = 0.3

API_KEY_SECRET = "CLAUDE_API_KEY"


class _ContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    text: str = ""
    id: str = ""
    name: str = ""
    input: Dict[str, Any] = Field(default_factory=dict)


class _Usage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    input_tokens: int = 0
    output_tokens: int = 0


class _MessagesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: List[_ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    usage: _Usage = Field(default_factory=_Usage)


class AnthropicProvider:
    """
    Thin async HTTP client for the Anthropic Messages API.

    Bring your own ``httpx.AsyncClient`` (tests pass one with a
    ``MockTransport``) or let the provider create one.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        top_p: float = DEFAULT_TOP_P,
        tools: Optional[List[ToolDefinition]] = None,
        api_url: str = ANTHROPIC_API_URL,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.tools = list(tools or [])
        self.api_url = api_url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
        }

    @staticmethod
    def convert_messages(messages: List[Message]) -> Tuple[List[Dict[str, Any]], str]:
        """Split ``messages`` into the API's ``messages`` list and ``system`` text."""
        converted: List[Dict[str, Any]] = []
        system = ""
        for msg in messages:
            if msg.role == MessageRole.system:
                system = msg.content
                continue
            # The API rejects empty text blocks; tool-only turns have no text.
            if not msg.content:
                continue
            converted.append({"role": msg.role.value, "content": [{"type": "text", "text": msg.content}]})
        return converted, system

    def build_request(self, messages: List[Message]) -> Dict[str, Any]:
        converted, system = self.convert_messages(messages)
        body: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "messages": converted,
        }
        if system:
            body["system"] = system
        if self.tools:
            body["tools"] = [t.model_dump() for t in self.tools]
        return body

    async def call(self, messages: List[Message]) -> ProviderResponse:
        body = self.build_request(messages)
        try:
            self._logger.debug(
                "AnthropicProvider.call: POST %s model=%s messages=%d", self.api_url, self.model, len(body["messages"])
            )
            r = await self._client.post(self.api_url, headers=self._headers(), json=body)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"API error (status {e.response.status_code}): {e.response.text}",
                status_code=e.response.status_code,
                details=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"request failed: {e}") from e

        try:
            payload = _MessagesResponse.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise ProviderError(f"failed to parse response: {e}", status_code=r.status_code, details=r.text) from e

        response = self.convert_response(payload)
        self._logger.debug(
            "AnthropicProvider.call: stop_reason=%s tool_calls=%d tokens_in=%d tokens_out=%d",
            response.stop_reason,
            len(response.tool_calls),
            response.tokens_in,
            response.tokens_out,
        )
        return response

    @staticmethod
    def convert_response(payload: _MessagesResponse) -> ProviderResponse:
        text: List[str] = []
        calls: List[ToolCall] = []
        for block in payload.content:
            if block.type == "text":
                text.append(block.text)
            elif block.type == "tool_use":
                calls.append(ToolCall(id=block.id, name=block.name, input=dict(block.input)))
        return ProviderResponse(
            content="".join(text),
            tool_calls=calls,
            stop_reason=payload.stop_reason or "",
            tokens_in=payload.usage.input_tokens,
            tokens_out=payload.usage.output_tokens,
        )
