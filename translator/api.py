"""Typed request/response boundary between the presentation layer and the translator core.

Every endpoint takes a plain mapping and returns a plain dict, so payloads can
cross any process boundary unchanged. Failures come back as
``{"error": {"code", "message", "details"}}``: ``VALIDATION_ERROR`` when the
input was rejected, one of the execution codes from :mod:`translator.errors`
when the operation ran and failed.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from translator.domain import ModelInfo, TranslationRequest, utc_timestamp
from translator.errors import (
    ModelNotFoundError,
    TranslationError,
    TranslationFailedError,
    TranslationValidationError,
)
from translator.interfaces import JsonDict
from translator.language_detection import LanguageDetector
from translator.orchestrator import TranslationService
from translator.provider_ollama import OllamaChatClient
from translator.schemas import (
    AddModelInput,
    DetectLanguageInput,
    ModelNameInput,
    ModelValidation,
    NamedModelInput,
    TranslateInput,
    TranslateOutput,
    UpdateSettingsInput,
)
from translator.settings_store import TranslationModel, TranslationSettingsRepository

logger = logging.getLogger(__name__)

Payload = Optional[Mapping[str, Any]]
Endpoint = Callable[..., Awaitable[JsonDict]]


def standard_error(code: str, message: str, details: Any = None) -> JsonDict:
    return {"error": {"code": code, "message": message, "details": details}}


def is_error(result: Mapping[str, Any]) -> bool:
    return "error" in result


def endpoint(func: Endpoint) -> Endpoint:
    """Convert exceptions raised by an endpoint into the standard error envelope."""

    @functools.wraps(func)
    async def wrapper(self: "TranslatorApi", payload: Payload = None) -> JsonDict:
        try:
            return await func(self, payload or {})
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            return standard_error(
                TranslationValidationError.code, "Validation failed", {"errors": errors}
            )
        except TranslationError as exc:
            logger.info(f"{func.__name__} failed with {exc.code}")
            return {"error": exc.to_dict()}
        except Exception as exc:  # noqa: BLE001
            logger.exception(f"Unhandled error in {func.__name__}")
            failure = TranslationFailedError(details=f"{func.__name__}: {exc}")
            return {"error": failure.to_dict()}

    return wrapper


class TranslatorApi:
    """Pass-through endpoints over the translation service, client and settings store."""

    def __init__(
        self,
        service: TranslationService,
        client: OllamaChatClient,
        repository: TranslationSettingsRepository,
        detector: LanguageDetector,
    ) -> None:
        self._service = service
        self._client = client
        self._repository = repository
        self._detector = detector

    # Translation endpoints

    @endpoint
    async def translate(self, payload: Mapping[str, Any]) -> JsonDict:
        data = TranslateInput.model_validate(payload)
        response = await self._service.translate(
            TranslationRequest(
                text=data.text,
                source_language=data.source_language,
                target_language=data.target_language,
                model_name=data.model_name,
            )
        )
        return TranslateOutput.model_validate(response.to_dict()).model_dump(by_alias=True)

    @endpoint
    async def translate_text(self, payload: Mapping[str, Any]) -> JsonDict:
        data = TranslateInput.model_validate(payload)
        response = await self._service.translate_text(
            data.text, data.source_language, data.target_language, data.model_name
        )
        return TranslateOutput.model_validate(response.to_dict()).model_dump(by_alias=True)

    @endpoint
    async def detect_language(self, payload: Mapping[str, Any]) -> JsonDict:
        data = DetectLanguageInput.model_validate(payload)
        return self._detector.detect_language(data.text).to_dict()

    @endpoint
    async def get_supported_languages(self, payload: Mapping[str, Any]) -> JsonDict:
        return {"languages": self._detector.get_supported_languages()}

    @endpoint
    async def get_available_models(self, payload: Mapping[str, Any]) -> JsonDict:
        models: List[ModelInfo] = await self._client.list_models()
        return {"models": [model.to_dict() for model in models]}

    @endpoint
    async def validate_model(self, payload: Mapping[str, Any]) -> JsonDict:
        data = ModelNameInput.model_validate(payload)
        exists = await self._client.model_exists(data.model_name)
        available = exists and await self._client.is_connected()
        return {"exists": exists, "available": available}

    @endpoint
    async def get_connection_status(self, payload: Mapping[str, Any]) -> JsonDict:
        status = await self._client.get_connection_status()
        return {"status": status.value}

    @endpoint
    async def cancel_translation(self, payload: Mapping[str, Any]) -> JsonDict:
        return {"cancelled": self._service.cancel_translation()}

    @endpoint
    async def is_translating(self, payload: Mapping[str, Any]) -> JsonDict:
        return {"translating": self._service.is_translating()}

    # Model management endpoints

    @endpoint
    async def get_models(self, payload: Mapping[str, Any]) -> JsonDict:
        models = await self._repository.get_models()
        return {"models": [model.model_dump(by_alias=True) for model in models]}

    @endpoint
    async def add_model(self, payload: Mapping[str, Any]) -> JsonDict:
        data = AddModelInput.model_validate(payload)
        if not await self._client.model_exists(data.name):
            raise ModelNotFoundError(details=f'Model "{data.name}" not found in Ollama')

        model = TranslationModel(
            name=data.name,
            is_default=data.make_default,
            is_available=True,
            last_used=utc_timestamp(),
        )
        settings = await self._repository.add_model(model)
        if not data.make_default:
            return settings.to_dict()

        try:
            settings = await self._repository.set_default_model(data.name)
        except Exception as exc:
            await self._rollback_added_model(data.name, exc)
            raise
        return settings.to_dict()

    @endpoint
    async def remove_model(self, payload: Mapping[str, Any]) -> JsonDict:
        data = NamedModelInput.model_validate(payload)
        settings = await self._repository.remove_model(data.name)
        return settings.to_dict()

    @endpoint
    async def set_default_model(self, payload: Mapping[str, Any]) -> JsonDict:
        data = NamedModelInput.model_validate(payload)
        settings = await self._repository.set_default_model(data.name)
        return settings.to_dict()

    @endpoint
    async def get_settings(self, payload: Mapping[str, Any]) -> JsonDict:
        settings = await self._repository.get_settings()
        return settings.to_dict()

    @endpoint
    async def update_settings(self, payload: Mapping[str, Any]) -> JsonDict:
        data = UpdateSettingsInput.model_validate(payload)
        settings = await self._repository.update_settings(data.model_dump(exclude_none=True))
        return settings.to_dict()

    @endpoint
    async def validate_all_models(self, payload: Mapping[str, Any]) -> JsonDict:
        models = await self._repository.get_models()
        results = await asyncio.gather(*(self._validate(model.name) for model in models))
        return {"results": [result.model_dump(by_alias=True) for result in results]}

    @endpoint
    async def refresh_model_availability(self, payload: Mapping[str, Any]) -> JsonDict:
        settings = await self._repository.get_settings()
        results = await asyncio.gather(*(self._validate(model.name) for model in settings.models))
        availability: Dict[str, bool] = {result.name: result.is_available for result in results}
        models = [
            model.model_copy(update={"is_available": availability[model.name]})
            for model in settings.models
        ]
        updated = await self._repository.update_settings({"models": models})
        return updated.to_dict()

    async def _validate(self, name: str) -> ModelValidation:
        try:
            available = await self._client.model_exists(name)
        except Exception as exc:  # noqa: BLE001
            return ModelValidation(name=name, is_available=False, error=str(exc))
        error = None if available else "Model not found in Ollama"
        return ModelValidation(name=name, is_available=available, error=error)

    async def _rollback_added_model(self, name: str, cause: Exception) -> None:
        try:
            await self._repository.remove_model(name)
        except Exception as cleanup_error:
            logger.error(f'Failed to roll back model "{name}": {cleanup_error}')
            raise TranslationFailedError(
                "Model operation failed and cleanup failed; settings may be inconsistent",
                details=str(cause),
            ) from cleanup_error
        logger.warning(f'Rolled back model "{name}" after failing to make it the default')


__all__ = ["TranslatorApi", "endpoint", "is_error", "standard_error"]
