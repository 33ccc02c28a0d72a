"""Ollama inference client built on its OpenAI-compatible chat completions API."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

import openai

from translator.cancellation import CancellationToken, run_cancellable
from translator.config import OllamaSettings
from translator.domain import ConnectionStatus, Message, ModelInfo
from translator.errors import ModelNotFoundError, classify_error

logger = logging.getLogger(__name__)

LATEST_SUFFIX = ":latest"
# Ollama ignores the key but the SDK refuses to start without one.
PLACEHOLDER_API_KEY = "ollama"


class OllamaChatClient:
    """Thin wrapper around the Ollama server.

    Every call re-probes the backend; the last observed state is kept in
    ``status`` for display only and is never used to skip a request.
    """

    def __init__(
        self,
        settings: OllamaSettings,
        client: Optional[openai.AsyncOpenAI] = None,
    ) -> None:
        self._settings = settings
        self._client = client or openai.AsyncOpenAI(
            base_url=settings.base_url,
            api_key=PLACEHOLDER_API_KEY,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )
        self._status = ConnectionStatus.DISCONNECTED

    @property
    def host(self) -> str:
        return self._settings.host

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    async def is_connected(self) -> bool:
        try:
            await self._client.models.list()
        except Exception:  # noqa: BLE001
            self._status = ConnectionStatus.DISCONNECTED
            return False
        self._status = ConnectionStatus.CONNECTED
        return True

    async def get_connection_status(self) -> ConnectionStatus:
        await self.is_connected()
        return self._status

    async def list_models(self) -> List[ModelInfo]:
        self._status = ConnectionStatus.CONNECTING
        try:
            page = await self._client.models.list()
        except Exception as exc:
            self._status = ConnectionStatus.ERROR
            raise classify_error(exc, "Failed to list models") from exc
        self._status = ConnectionStatus.CONNECTED
        return [
            ModelInfo(
                name=model.id,
                created=getattr(model, "created", None),
                owned_by=getattr(model, "owned_by", None),
            )
            for model in page.data
        ]

    async def model_exists(self, model_name: str) -> bool:
        try:
            names = [model.name for model in await self.list_models()]
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error checking model existence for {model_name}: {exc}")
            return False

        if model_name in names:
            return True

        base_name = model_name
        if model_name.endswith(LATEST_SUFFIX):
            base_name = model_name[: -len(LATEST_SUFFIX)]
        if base_name in names or f"{base_name}{LATEST_SUFFIX}" in names:
            logger.debug(f"Matched {model_name} via base name {base_name}")
            return True

        logger.debug(f"Model {model_name} not found among {len(names)} backend models")
        return False

    async def chat(
        self,
        model: str,
        messages: Iterable[Message],
        temperature: Optional[float] = None,
        token: Optional[CancellationToken] = None,
        top_p: Optional[float] = None,
    ) -> str:
        try:
            await self._ensure_model(model)
            self._status = ConnectionStatus.CONNECTING
            payload = self._payload(model, messages, temperature, top_p)
            response = await run_cancellable(
                self._client.chat.completions.create(**payload), token
            )
            self._status = ConnectionStatus.CONNECTED
            return response.choices[0].message.content or ""
        except Exception as exc:
            self._status = ConnectionStatus.ERROR
            raise classify_error(exc, "Translation failed") from exc

    async def chat_stream(
        self,
        model: str,
        messages: Iterable[Message],
        temperature: Optional[float] = None,
        token: Optional[CancellationToken] = None,
        top_p: Optional[float] = None,
    ) -> AsyncIterator[str]:
        try:
            await self._ensure_model(model)
            self._status = ConnectionStatus.CONNECTING
            payload = self._payload(model, messages, temperature, top_p)
            stream = await run_cancellable(
                self._client.chat.completions.create(stream=True, **payload), token
            )
            self._status = ConnectionStatus.CONNECTED
        except Exception as exc:
            self._status = ConnectionStatus.ERROR
            raise classify_error(exc, "Streaming translation failed") from exc

        chunks = stream.__aiter__()
        try:
            while True:
                chunk = await run_cancellable(_next_chunk(chunks), token)
                if chunk is None:
                    break
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except Exception as exc:
            self._status = ConnectionStatus.ERROR
            raise classify_error(exc, "Streaming translation failed") from exc
        finally:
            await stream.close()

    async def _ensure_model(self, model: str) -> None:
        if not await self.model_exists(model):
            raise ModelNotFoundError(details=f'Model "{model}" not found in Ollama')

    def _payload(
        self,
        model: str,
        messages: Iterable[Message],
        temperature: Optional[float],
        top_p: Optional[float],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [dict(message) for message in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        top_p = top_p if top_p is not None else self._settings.top_p
        if top_p is not None:
            payload["top_p"] = top_p
        return payload


async def _next_chunk(chunks: AsyncIterator[Any]) -> Any:
    """Next stream chunk, or None once the stream is exhausted."""
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


def create_client(settings: OllamaSettings) -> OllamaChatClient:
    return OllamaChatClient(settings)


__all__ = ["OllamaChatClient", "create_client"]
