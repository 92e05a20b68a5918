"""Provider resolution with per-agent caching and priority fallback."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, Optional

from .config import ProviderConfig
from .contracts import ErrorCode
from .providers import BaseProvider, create_provider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderConfig], BaseProvider]


class NoProviderAvailable(Exception):
    """Every enabled provider candidate failed to construct or was unavailable."""

    code = ErrorCode.NO_PROVIDER_AVAILABLE
    retryable = True

    def __init__(self, agent_id: str, attempted: list[str]) -> None:
        super().__init__("No ML provider available for agent")
        self.agent_id = agent_id
        self.attempted = attempted


class ProviderCache:
    """Thread-safe map of agent id to resolved provider.

    Lives for as long as its owner; last writer wins.
    """

    def __init__(self) -> None:
        self._providers: Dict[str, BaseProvider] = {}
        self._lock = threading.Lock()

    def get(self, agent_id: str) -> Optional[BaseProvider]:
        with self._lock:
            return self._providers.get(agent_id)

    def set(self, agent_id: str, provider: BaseProvider) -> None:
        with self._lock:
            self._providers[agent_id] = provider

    def evict(self, agent_id: str) -> None:
        with self._lock:
            self._providers.pop(agent_id, None)

    def clear(self) -> None:
        with self._lock:
            self._providers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)


async def _probe(provider: BaseProvider) -> bool:
    """Availability check that reports a raising provider as unavailable."""
    try:
        return await provider.is_available()
    except Exception as e:
        logger.warning(f"Availability check for provider {provider.name} failed: {e}")
        return False


class ProviderResolver:
    """Pick the first enabled, available provider in priority order."""

    def __init__(
        self,
        cache: Optional[ProviderCache] = None,
        factory: ProviderFactory = create_provider,
        fallback: Optional[BaseProvider] = None,
    ) -> None:
        self.cache = cache if cache is not None else ProviderCache()
        self._factory = factory
        self._fallback = fallback

    async def resolve(
        self, agent_id: str, candidate_configs: Iterable[ProviderConfig]
    ) -> BaseProvider:
        """Return a usable provider for ``agent_id``.

        Raises:
            NoProviderAvailable: When no candidate works and no fallback is set.
        """
        cached = self.cache.get(agent_id)
        if cached is not None:
            if await _probe(cached):
                return cached
            logger.info(f"Cached provider {cached.name} for agent {agent_id} unavailable")
            self.cache.evict(agent_id)

        candidates = sorted(
            (config for config in candidate_configs if config.enabled),
            key=lambda config: config.priority,
        )
        attempted: list[str] = []
        for config in candidates:
            attempted.append(config.name)
            try:
                provider = self._factory(config)
                available = await provider.is_available()
            except Exception as e:
                logger.warning(f"Provider {config.name} ({config.type}) failed to initialize: {e}")
                continue
            if not available:
                logger.warning(f"Provider {config.name} ({config.type}) is not available")
                continue
            self.cache.set(agent_id, provider)
            logger.debug(f"Resolved provider {config.name} for agent {agent_id}")
            return provider

        if self._fallback is not None:
            logger.warning(
                f"No provider available for agent {agent_id} (tried {attempted}); "
                f"using fallback {self._fallback.name}"
            )
            return self._fallback

        raise NoProviderAvailable(agent_id, attempted)
