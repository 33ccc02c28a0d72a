"""Translation orchestrator: model resolution, prompting, single-flight state and cancellation."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set

from translator.cancellation import CancellationToken
from translator.config import load_language_names
from translator.domain import Message, TranslationRequest, TranslationResponse, utc_timestamp
from translator.errors import NoAvailableModelsError, TranslationValidationError
from translator.interfaces import InferenceClient, SettingsRepository

logger = logging.getLogger(__name__)

TRANSLATION_TEMPERATURE = 0.3
SYSTEM_PROMPT = (
    "You are a professional translator. Translate the given text accurately and naturally. "
    "Return only the translated text without any explanations or additional content."
)
USER_PROMPT_TEMPLATE = "Translate the following {source} text to {target}:\n\n{text}"


class TranslationService:
    """Turns a translation request into a response using the local inference backend.

    One instance lives for the whole process. It tracks a single in-flight
    translation through a busy flag and the cancellation token of that call.
    Source and translated text are never logged.
    """

    def __init__(
        self,
        client: InferenceClient,
        settings_repository: SettingsRepository,
        language_names: Optional[Dict[str, str]] = None,
    ) -> None:
        self._client = client
        self._settings_repository = settings_repository
        self._language_names = language_names or load_language_names()
        self._translating = False
        self._active_token: Optional[CancellationToken] = None
        self._background: Set[asyncio.Task] = set()

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        source_language = request.source_language
        target_language = request.target_language
        if not source_language or not target_language:
            raise TranslationValidationError("Source and target languages are required")

        token = self._begin()
        try:
            model_name = await self._resolve_model(request.model_name)
            token.raise_if_cancelled()

            if source_language == target_language:
                return TranslationResponse(
                    translated_text=request.text,
                    source_language=source_language,
                    target_language=target_language,
                    model_used=model_name,
                    timestamp=utc_timestamp(),
                )

            messages = self.build_messages(request.text, source_language, target_language)
            logger.info(f"Translating {source_language} -> {target_language} with {model_name}")
            reply = await self._client.chat(
                model_name,
                messages,
                temperature=TRANSLATION_TEMPERATURE,
                token=token,
            )

            self._record_usage(model_name)

            return TranslationResponse(
                translated_text=reply.strip(),
                source_language=source_language,
                target_language=target_language,
                model_used=model_name,
                timestamp=utc_timestamp(),
            )
        finally:
            self._finish(token)

    async def translate_text(
        self,
        text: str,
        source_language: Optional[str],
        target_language: Optional[str],
        model_name: Optional[str] = None,
    ) -> TranslationResponse:
        return await self.translate(
            TranslationRequest(
                text=text,
                source_language=source_language,
                target_language=target_language,
                model_name=model_name,
            )
        )

    def cancel_translation(self) -> bool:
        """Abort the in-flight translation, if any. Returns whether one was cancelled."""
        token = self._active_token
        if token is None or not self._translating:
            return False
        token.cancel()
        self._active_token = None
        self._translating = False
        logger.info("Translation cancelled")
        return True

    def is_translating(self) -> bool:
        return self._translating

    async def drain(self) -> None:
        """Wait for pending usage-recording tasks to settle."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def build_messages(
        self, text: str, source_language: str, target_language: str
    ) -> List[Message]:
        prompt = USER_PROMPT_TEMPLATE.format(
            source=self._display_name(source_language),
            target=self._display_name(target_language),
            text=text,
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def _begin(self) -> CancellationToken:
        # A second overlapping call takes over the slot; see DESIGN.md.
        if self._translating:
            logger.warning("Translation started while another is in flight")
        token = CancellationToken()
        self._active_token = token
        self._translating = True
        return token

    def _finish(self, token: CancellationToken) -> None:
        if self._active_token is token:
            self._active_token = None
            self._translating = False

    async def _resolve_model(self, requested_model: Optional[str]) -> str:
        if requested_model:
            if await self._client.model_exists(requested_model):
                return requested_model
            logger.warning(f'Requested model "{requested_model}" not found, falling back')

        settings = await self._settings_repository.get_settings()
        if settings.default_model:
            if await self._client.model_exists(settings.default_model):
                return settings.default_model
            logger.warning(f'Default model "{settings.default_model}" not found, falling back')

        available = await self._client.list_models()
        if available:
            return available[0].name

        raise NoAvailableModelsError("No available models found")

    def _display_name(self, code: str) -> str:
        return self._language_names.get(code.lower(), code)

    def _record_usage(self, model_name: str) -> None:
        task = asyncio.create_task(self._update_usage(model_name))
        self._background.add(task)
        task.add_done_callback(self._usage_recorded)

    async def _update_usage(self, model_name: str) -> None:
        await self._settings_repository.update_model_usage(model_name)

    def _usage_recorded(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Failed to update model usage: {error}")


__all__ = ["SYSTEM_PROMPT", "TRANSLATION_TEMPERATURE", "TranslationService"]
