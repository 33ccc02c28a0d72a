"""Lazily wires the translator's collaborators together, once per process."""

from __future__ import annotations

from typing import Optional

from translator.api import TranslatorApi
from translator.config import AppSettings, load_language_names
from translator.language_detection import LanguageDetector
from translator.orchestrator import TranslationService
from translator.provider_ollama import OllamaChatClient, create_client
from translator.settings_store import JsonFileStore, TranslationSettingsRepository


class Container:
    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        client: Optional[OllamaChatClient] = None,
    ) -> None:
        self._settings = settings
        self._repository: Optional[TranslationSettingsRepository] = None
        self._client = client
        self._detector: Optional[LanguageDetector] = None
        self._service: Optional[TranslationService] = None
        self._api: Optional[TranslatorApi] = None

    @property
    def settings(self) -> AppSettings:
        if self._settings is None:
            self._settings = AppSettings.load()
        return self._settings

    @property
    def repository(self) -> TranslationSettingsRepository:
        if self._repository is None:
            store = JsonFileStore(self.settings.store.path)
            self._repository = TranslationSettingsRepository(store)
        return self._repository

    @property
    def client(self) -> OllamaChatClient:
        if self._client is None:
            self._client = create_client(self.settings.ollama)
        return self._client

    @property
    def detector(self) -> LanguageDetector:
        if self._detector is None:
            self._detector = LanguageDetector()
        return self._detector

    @property
    def service(self) -> TranslationService:
        if self._service is None:
            self._service = TranslationService(
                self.client, self.repository, language_names=load_language_names()
            )
        return self._service

    @property
    def api(self) -> TranslatorApi:
        if self._api is None:
            self._api = TranslatorApi(self.service, self.client, self.repository, self.detector)
        return self._api


container = Container()

__all__ = ["Container", "container"]
