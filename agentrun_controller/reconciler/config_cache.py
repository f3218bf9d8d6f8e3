from __future__ import annotations

"""Process-lifetime cache of ``AgentConfig`` objects.

Profiles are treated as immutable once read: the first successfully loaded
value for a ``(namespace, name)`` key is kept. Lookups and loads are
serialized by one ``asyncio.Lock`` so concurrent reconciles never load the
same profile twice. Failed loads are not cached.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from ..apis.agentconfig import AgentConfig

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[str, str], Awaitable[AgentConfig]]


class AgentConfigCache:
    def __init__(self) -> None:
        self._items: Dict[Tuple[str, str], AgentConfig] = {}
        self._lock = asyncio.Lock()

    async def get_or_load(self, namespace: str, name: str, loader: ConfigLoader) -> AgentConfig:
        """Return the cached profile or load it with ``loader(namespace, name)``."""
        key = (namespace, name)
        async with self._lock:
            cached = self._items.get(key)
            if cached is not None:
                return cached
            config = await loader(namespace, name)
            self._items[key] = config
            logger.debug("Cached AgentConfig %s/%s", namespace, name)
            return config

    def get(self, namespace: str, name: str) -> Optional[AgentConfig]:
        return self._items.get((namespace, name))

    def __len__(self) -> int:
        return len(self._items)
