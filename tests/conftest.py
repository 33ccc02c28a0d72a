"""Shared fixtures for the translator tests."""

import pytest

from fakes import LANGUAGE_NAMES, FakeInferenceClient, FakeSettingsRepository
from translator.orchestrator import TranslationService
from translator.settings_store import JsonFileStore, TranslationSettingsRepository


@pytest.fixture
def fake_client():
    return FakeInferenceClient()


@pytest.fixture
def fake_repository():
    return FakeSettingsRepository()


@pytest.fixture
def service(fake_client, fake_repository):
    return TranslationService(fake_client, fake_repository, language_names=LANGUAGE_NAMES)


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def repository(settings_path):
    return TranslationSettingsRepository(JsonFileStore(settings_path))
