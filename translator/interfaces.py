"""Core interfaces for dependency inversion."""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol

from translator.cancellation import CancellationToken
from translator.domain import Message, ModelInfo
from translator.settings_store import TranslationSettings


class InferenceClient(Protocol):
    """Protocol for the local model-serving backend used by the translation service.

    The orchestrator depends only on this surface, so tests and alternative
    backends can be swapped in without touching the translation logic.
    """

    async def is_connected(self) -> bool:
        """Best-effort liveness probe. Never raises; returns False on any failure."""
        ...

    async def list_models(self) -> List[ModelInfo]:
        """Return the models known to the backend, in backend order.

        Raises:
            TranslationError: classified failure when the backend cannot be queried
        """
        ...

    async def model_exists(self, model_name: str) -> bool:
        """Check a model name, tolerating a missing or extra ':latest' suffix.

        Never raises; returns False on failure.
        """
        ...

    async def chat(
        self,
        model: str,
        messages: Iterable[Message],
        temperature: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """Execute one non-streaming chat round trip and return the reply text.

        Raises:
            ModelNotFoundError: if the model does not exist on the backend
            TranslationCancelledError: if ``token`` fires before the reply arrives
            TranslationError: any other classified failure (no internal retries)
        """
        ...

    def chat_stream(
        self,
        model: str,
        messages: Iterable[Message],
        temperature: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[str]:
        """Yield reply fragments as they arrive, with the same contract as ``chat``."""
        ...


class SettingsRepository(Protocol):
    """The slice of the settings store the translation service reads and writes."""

    async def get_settings(self) -> TranslationSettings:
        """Return the current settings snapshot; never raises."""
        ...

    async def update_model_usage(self, model_name: str) -> None:
        """Record that ``model_name`` was just used."""
        ...


JsonDict = Dict[str, Any]

__all__ = ["InferenceClient", "JsonDict", "Message", "SettingsRepository"]
