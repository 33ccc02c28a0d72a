"""Tests for TranslationService: model resolution, busy state, cancellation and usage."""

import asyncio
import re

import pytest

from fakes import LANGUAGE_NAMES, FakeInferenceClient, FakeSettingsRepository
from translator.cancellation import run_cancellable
from translator.domain import ModelInfo, TranslationRequest
from translator.errors import (
    BackendUnavailableError,
    NoAvailableModelsError,
    TranslationCancelledError,
    TranslationValidationError,
)
from translator.orchestrator import SYSTEM_PROMPT, TRANSLATION_TEMPERATURE, TranslationService

ISO_8601 = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


def make_request(**overrides):
    values = {
        "text": "Hello World",
        "source_language": "en",
        "target_language": "ja",
        "model_name": "llama2:latest",
    }
    values.update(overrides)
    return TranslationRequest(**values)


class TestTranslate:
    """Happy path and validation of translate()."""

    async def test_same_language_returns_input(self, service, fake_client, fake_repository):
        """Same source and target skips the backend entirely."""
        request = make_request(source_language="en", target_language="en")

        result = await service.translate(request)

        assert result.translated_text == "Hello World"
        assert result.source_language == "en"
        assert result.target_language == "en"
        assert result.model_used == "llama2:latest"
        assert fake_client.chat_calls == []
        await service.drain()
        assert fake_repository.usage_calls == []

    async def test_missing_source_language(self, service, fake_client):
        """A missing source language fails before any backend call."""
        with pytest.raises(TranslationValidationError, match="Source and target languages"):
            await service.translate(make_request(source_language=None))
        assert fake_client.exists_calls == []
        assert service.is_translating() is False

    async def test_missing_target_language(self, service, fake_client):
        """A missing target language fails before any backend call."""
        with pytest.raises(TranslationValidationError, match="Source and target languages"):
            await service.translate(make_request(target_language=None))
        assert fake_client.exists_calls == []

    async def test_translation_response(self, service, fake_client):
        """The backend reply is trimmed and packaged with the resolved model."""
        fake_client.reply = "  こんにちは世界\n"
        request = make_request(model_name=None)

        result = await service.translate(request)

        assert result.translated_text == "こんにちは世界"
        assert result.source_language == "en"
        assert result.target_language == "ja"
        assert result.model_used == "llama2:latest"
        assert ISO_8601.match(result.timestamp)

    async def test_prompt_and_temperature(self, service, fake_client):
        """The chat call carries the translator system prompt and a low temperature."""
        await service.translate(make_request())

        call = fake_client.chat_calls[0]
        system, user = call["messages"]
        assert system == {"role": "system", "content": SYSTEM_PROMPT}
        assert "professional translator" in system["content"]
        assert user["role"] == "user"
        assert user["content"] == "Translate the following English text to Japanese:\n\nHello World"
        assert call["temperature"] == TRANSLATION_TEMPERATURE == 0.3

    async def test_chat_receives_cancellation_token(self, service, fake_client):
        """Each call hands its own token to the backend."""
        await service.translate(make_request())
        assert fake_client.chat_calls[0]["token"] is not None

    async def test_backend_failure_propagates(self, service, fake_client):
        """Failures from the inference client reach the caller unchanged."""
        fake_client.chat_error = BackendUnavailableError()

        with pytest.raises(BackendUnavailableError):
            await service.translate(make_request())

    async def test_translate_text_delegates(self, service, fake_client):
        """translate_text builds a request from positional arguments."""
        fake_client.reply = "Hello World"

        result = await service.translate_text("こんにちは世界", "ja", "en", "llama3:latest")

        assert result.translated_text == "Hello World"
        assert result.source_language == "ja"
        assert result.target_language == "en"
        assert fake_client.chat_calls[0]["model"] == "llama3:latest"


class TestModelResolution:
    """Fallback chain: requested, then default, then first listed."""

    async def test_uses_requested_model(self, service, fake_client):
        """An existing requested model is used as-is."""
        fake_client.models.append(ModelInfo(name="custom-model"))

        await service.translate(make_request(model_name="custom-model"))

        assert fake_client.exists_calls[0] == "custom-model"
        assert fake_client.chat_calls[0]["model"] == "custom-model"

    async def test_falls_back_to_default(self, service, fake_client, fake_repository):
        """A nonexistent requested model falls back to the configured default."""
        fake_repository.settings.default_model = "llama3:latest"

        result = await service.translate(make_request(model_name="nonexistent-model"))

        assert fake_client.chat_calls[0]["model"] == "llama3:latest"
        assert result.model_used == "llama3:latest"

    async def test_first_available_without_default(self, fake_client):
        """With no request and no default, the first backend model is used."""
        fake_client.models = fake_client.models[::-1]
        service = TranslationService(
            fake_client, FakeSettingsRepository(default_model=None), LANGUAGE_NAMES
        )

        await service.translate(make_request(model_name=None))

        assert fake_client.chat_calls[0]["model"] == "llama3:latest"

    async def test_missing_default_falls_through(self, service, fake_client, fake_repository):
        """A default that vanished from the backend is skipped."""
        fake_repository.settings.default_model = "gone:latest"

        await service.translate(make_request(model_name=None))

        assert fake_client.chat_calls[0]["model"] == "llama2:latest"

    async def test_no_available_models(self):
        """An empty backend ends the chain with a distinct error."""
        client = FakeInferenceClient(models=())
        service = TranslationService(
            client, FakeSettingsRepository(default_model=None), LANGUAGE_NAMES
        )

        with pytest.raises(NoAvailableModelsError, match="No available models found"):
            await service.translate(make_request(model_name=None))
        assert client.chat_calls == []
        assert service.is_translating() is False


class TestBusyState:
    """is_translating() tracks exactly the in-flight call."""

    async def test_flag_during_and_after_call(self, service, fake_client):
        """The flag is visible from inside the backend call and cleared afterwards."""
        observed = []

        async def record(token):
            observed.append(service.is_translating())
            return "translated"

        fake_client.on_chat = record

        assert service.is_translating() is False
        await service.translate(make_request())

        assert observed == [True]
        assert service.is_translating() is False

    async def test_flag_cleared_on_failure(self, service, fake_client):
        """A failing translation never leaves the service stuck busy."""
        fake_client.chat_error = RuntimeError("Translation failed")

        with pytest.raises(RuntimeError):
            await service.translate(make_request())

        assert service.is_translating() is False

    async def test_overlapping_call_owns_the_slot(self, service, fake_client):
        """The first call finishing does not clear the second call's busy state."""
        gates = [asyncio.Event(), asyncio.Event()]
        started = [asyncio.Event(), asyncio.Event()]

        async def gated(token):
            index = len(fake_client.chat_calls) - 1
            started[index].set()
            await gates[index].wait()
            return f"reply {index}"

        fake_client.on_chat = gated

        first = asyncio.create_task(service.translate(make_request()))
        await started[0].wait()
        second = asyncio.create_task(service.translate(make_request()))
        await started[1].wait()

        gates[0].set()
        assert (await first).translated_text == "reply 0"
        assert service.is_translating() is True

        gates[1].set()
        assert (await second).translated_text == "reply 1"
        assert service.is_translating() is False


class TestCancellation:
    """cancel_translation() aborts the in-flight call through its token."""

    def test_cancel_when_idle(self, service):
        """Nothing to cancel returns False without raising."""
        assert service.cancel_translation() is False
        assert service.is_translating() is False

    async def test_cancel_in_flight(self, service, fake_client, fake_repository):
        """Cancelling makes the pending translate() fail with a cancellation error."""
        started = asyncio.Event()

        async def hang(token):
            started.set()
            return await run_cancellable(asyncio.sleep(3600, result="late"), token)

        fake_client.on_chat = hang

        task = asyncio.create_task(service.translate(make_request()))
        await started.wait()

        assert service.is_translating() is True
        assert service.cancel_translation() is True
        assert service.is_translating() is False

        with pytest.raises(TranslationCancelledError):
            await task
        await service.drain()
        assert fake_repository.usage_calls == []

    @pytest.mark.parametrize("target_language", ["en", "ja"])
    async def test_cancel_during_model_resolution(
        self, service, fake_client, fake_repository, target_language
    ):
        """Cancelling while the model is being resolved rejects the call, even for en -> en."""
        fake_client.exists_gate = asyncio.Event()
        request = make_request(source_language="en", target_language=target_language)

        task = asyncio.create_task(service.translate(request))
        await fake_client.exists_started.wait()

        assert service.cancel_translation() is True
        fake_client.exists_gate.set()

        with pytest.raises(TranslationCancelledError):
            await task
        assert fake_client.chat_calls == []
        assert service.is_translating() is False
        await service.drain()
        assert fake_repository.usage_calls == []

    async def test_cancel_after_completion(self, service):
        """Once a translation has finished there is nothing left to cancel."""
        await service.translate(make_request())
        assert service.cancel_translation() is False


class TestUsageRecording:
    """Usage timestamps are recorded off the main path."""

    async def test_usage_recorded_once(self, service, fake_repository):
        """A successful translation records usage for the resolved model."""
        await service.translate(make_request(model_name=None))
        await service.drain()

        assert fake_repository.usage_calls == ["llama2:latest"]

    async def test_usage_failure_is_ignored(self, service, fake_repository, caplog):
        """A failing usage update does not affect the translation result."""
        fake_repository.usage_error = OSError("disk full")

        result = await service.translate(make_request())
        await service.drain()

        assert result.translated_text == "mocked translation"
        assert fake_repository.usage_calls == ["llama2:latest"]
        assert "Failed to update model usage" in caplog.text
