"""Persistence of the user's registered models and default model."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from translator.domain import utc_timestamp
from translator.errors import ModelNotFoundError

logger = logging.getLogger(__name__)

SETTINGS_KEY = "translation-settings"


class TranslationModel(BaseModel):
    """A model the user has registered for translation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    is_default: bool = False
    is_available: bool = True
    last_used: Optional[str] = None


class TranslationSettings(BaseModel):
    """Registered models plus the default-model pointer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    default_model: Optional[str] = None
    auto_detect_language: bool = False
    models: List[TranslationModel] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def find(self, name: str) -> Optional[TranslationModel]:
        for model in self.models:
            if model.name == name:
                return model
        return None


class JsonFileStore:
    """Minimal key/value store persisted as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read settings file {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"{self._path} does not contain a JSON object, ignoring it")
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class TranslationSettingsRepository:
    """Async repository over the settings document.

    File access runs in a worker thread so callers on the event loop are
    never blocked by disk I/O. Every read-modify-write holds ``_lock`` so a
    background usage update cannot overwrite a concurrent model change.
    """

    def __init__(self, store: JsonFileStore) -> None:
        self._store = store
        self._lock = asyncio.Lock()

    async def get_settings(self) -> TranslationSettings:
        try:
            data = await asyncio.to_thread(self._store.get, SETTINGS_KEY)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Failed to load translation settings: {e}")
            return TranslationSettings()
        if not data:
            return TranslationSettings()
        try:
            return TranslationSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Stored translation settings are invalid, using defaults: {e}")
            return TranslationSettings()

    async def update_settings(self, partial: Mapping[str, Any]) -> TranslationSettings:
        async with self._lock:
            current = await self.get_settings()
            merged = current.model_dump()
            for key, value in partial.items():
                field = self._field_name(key)
                if field is None:
                    logger.debug(f"Ignoring unknown settings field: {key}")
                    continue
                merged[field] = value
            updated = TranslationSettings.model_validate(merged)
            return await self._save(updated)

    async def add_model(self, model: TranslationModel) -> TranslationSettings:
        async with self._lock:
            settings = await self.get_settings()
            index = next(
                (i for i, m in enumerate(settings.models) if m.name == model.name), None
            )
            if index is None:
                settings.models.append(model)
            else:
                settings.models[index] = model

            if len(settings.models) == 1 and not settings.default_model:
                settings.default_model = model.name

            return await self._save(settings)

    async def remove_model(self, model_name: str) -> TranslationSettings:
        async with self._lock:
            settings = await self.get_settings()
            settings.models = [m for m in settings.models if m.name != model_name]

            if settings.default_model == model_name:
                settings.default_model = settings.models[0].name if settings.models else None

            return await self._save(settings)

    async def set_default_model(self, model_name: str) -> TranslationSettings:
        async with self._lock:
            settings = await self.get_settings()
            if settings.find(model_name) is None:
                raise ModelNotFoundError(
                    details=f'Model "{model_name}" not found in registered models'
                )
            settings.default_model = model_name
            return await self._save(settings)

    async def get_models(self) -> List[TranslationModel]:
        settings = await self.get_settings()
        return settings.models

    async def update_model_usage(self, model_name: str) -> None:
        async with self._lock:
            settings = await self.get_settings()
            model = settings.find(model_name)
            if model is None:
                logger.warning(f'Model "{model_name}" not found for usage tracking')
                return
            model.last_used = utc_timestamp()
            await self._save(settings, sync_defaults=False)

    async def _save(
        self, settings: TranslationSettings, sync_defaults: bool = True
    ) -> TranslationSettings:
        if sync_defaults:
            for model in settings.models:
                model.is_default = model.name == settings.default_model
        await asyncio.to_thread(self._store.set, SETTINGS_KEY, settings.to_dict())
        return settings

    @staticmethod
    def _field_name(key: str) -> Optional[str]:
        for name, info in TranslationSettings.model_fields.items():
            if key in (name, info.alias):
                return name
        return None


__all__ = [
    "JsonFileStore",
    "SETTINGS_KEY",
    "TranslationModel",
    "TranslationSettings",
    "TranslationSettingsRepository",
]
