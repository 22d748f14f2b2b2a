"""
AI gateway: a sequential failover chain over completion backends.

Backends are tried strictly one after another in priority order, with a
manually pinned backend moved to the front. Within a backend, transient
errors are retried with backoff; any other error moves on to the next
backend. The chain raises AIBackendUnavailable only when every backend has
failed, chaining the error that started the failover.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from property_scout.ai.backends import AIBackend, Message, build_default_backends
from property_scout.config.settings import AIConfig, RetryConfig
from property_scout.error_handling.error_handler import ErrorHandler, is_transient_error
from property_scout.error_handling.exceptions import AIBackendUnavailable


logger = logging.getLogger(__name__)


@dataclass
class AIHealth:
    """Cached result of probing the backends."""
    available: bool
    backend: Optional[str]
    probes: Dict[str, bool] = field(default_factory=dict)


@dataclass
class BackendStatus:
    name: str
    label: str
    configured: bool
    available: bool
    is_cloud: bool
    model: str
    models: List[str] = field(default_factory=list)
    active: bool = False


@dataclass
class SwitchResult:
    success: bool
    message: str


class AIGateway:
    """
    Resilient text completion across interchangeable backends.

    Attributes:
        backends: Backends in priority order
        preferred_backend: Name of the manually pinned backend, if any
    """

    def __init__(
        self,
        backends: Optional[List[AIBackend]] = None,
        config: Optional[AIConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        preferred_backend: Optional[str] = None
    ):
        self.backends = backends if backends is not None else build_default_backends(config or AIConfig())
        self.error_handler = ErrorHandler(retry_config)
        self.preferred_backend = preferred_backend
        self._health: Optional[AIHealth] = None
        self.last_backend: Optional[str] = None

    def _get(self, name: str) -> Optional[AIBackend]:
        for backend in self.backends:
            if backend.name == name:
                return backend
        return None

    def chain(self) -> List[AIBackend]:
        """Configured backends in the order they will be tried."""
        ordered = [b for b in self.backends if b.is_configured()]
        if self.preferred_backend:
            pinned = [b for b in ordered if b.name == self.preferred_backend]
            ordered = pinned + [b for b in ordered if b.name != self.preferred_backend]
        return ordered

    async def complete(
        self,
        prompt: str,
        system_prompt: str = "",
        history: Optional[List[Message]] = None
    ) -> str:
        """
        Get a completion from the first backend that succeeds.

        Args:
            prompt: The user turn
            system_prompt: System instructions
            history: Earlier turns as role/content dicts

        Returns:
            Completion text

        Raises:
            AIBackendUnavailable: If no backend is configured or all of them failed
        """
        messages = [*(history or []), {"role": "user", "content": prompt}]
        chain = self.chain()
        if not chain:
            raise AIBackendUnavailable("No AI backend is configured")

        first_error: Optional[BaseException] = None
        for backend in chain:
            try:
                text = await self.error_handler.retry_with_backoff(
                    backend.complete,
                    messages,
                    system_prompt,
                    retry_if=is_transient_error,
                )
            except Exception as e:
                if first_error is None:
                    first_error = e
                logger.warning(f"AI backend {backend.name} failed ({type(e).__name__}: {e}); trying next backend")
                continue

            if first_error is not None:
                logger.warning(f"AI request served by fallback backend {backend.name}")
            self.last_backend = backend.name
            return text

        logger.error(f"All AI backends exhausted: {[b.name for b in chain]}")
        raise AIBackendUnavailable("All AI backends failed", first_error) from first_error

    async def check_health(self) -> AIHealth:
        """Probe backends once and cache the result until reset_health()."""
        if self._health is not None:
            return self._health

        probes: Dict[str, bool] = {}
        for backend in self.chain():
            probes[backend.name] = await backend.probe()

        active = next((name for name, ok in probes.items() if ok), None)
        self._health = AIHealth(available=active is not None, backend=active, probes=probes)
        logger.info(f"AI health: available={self._health.available} backend={active}")
        return self._health

    def reset_health(self) -> None:
        self._health = None

    async def list_backends(self) -> List[BackendStatus]:
        """Status of every known backend, configured or not."""
        current = self.current_backend_info()["backend"]
        statuses = []
        for backend in self.backends:
            configured = backend.is_configured()
            models = await backend.list_models() if configured else []
            available = configured and await backend.probe()
            statuses.append(BackendStatus(
                name=backend.name,
                label=backend.label,
                configured=configured,
                available=available,
                is_cloud=backend.is_cloud,
                model=backend.model,
                models=models,
                active=backend.name == current,
            ))
        return statuses

    async def switch_backend(self, name: str, model: Optional[str] = None) -> SwitchResult:
        """
        Pin a backend (and optionally a model) to the front of the chain.

        The switch is rejected, leaving state untouched, if the backend is
        unknown, unreachable, or does not offer the requested model.
        """
        backend = self._get(name)
        if backend is None:
            return SwitchResult(False, f"Unknown backend: {name}")
        if not backend.is_configured() or not await backend.probe():
            return SwitchResult(False, f"Backend {name} is not available")

        if model:
            models = await backend.list_models()
            with_latest = model if ":" in model else f"{model}:latest"
            if model not in models and with_latest not in models:
                return SwitchResult(False, f"Model {model} not found. Available: {', '.join(models)}")
            backend.model = model

        self.preferred_backend = name
        self.reset_health()
        logger.info(f"AI backend switched to {name}" + (f" (model: {model})" if model else ""))
        return SwitchResult(True, f"Switched to {backend.label}" + (f" with model {model}" if model else ""))

    def current_backend_info(self) -> Dict[str, Any]:
        chain = self.chain()
        if not chain:
            return {"backend": None, "model": None, "pinned": False}
        backend = chain[0]
        return {
            "backend": backend.name,
            "model": backend.model,
            "pinned": backend.name == self.preferred_backend,
        }

    async def close(self) -> None:
        for backend in self.backends:
            await backend.close()
