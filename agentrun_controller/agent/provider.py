from __future__ import annotations

"""LLM provider protocol.

A provider performs exactly one model round trip over the full ordered
conversation. The loop never retries a failed call; errors propagate to the
loop, which fails the run.
"""

from typing import List, Protocol

from .models import Message, ProviderResponse


class Provider(Protocol):
    """Protocol for LLM provider implementations."""

    async def call(self, messages: List[Message]) -> ProviderResponse: ...
