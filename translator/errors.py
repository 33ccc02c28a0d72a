"""Error taxonomy shared by the inference client, orchestrator and API boundary."""

from __future__ import annotations

from typing import Dict, Optional

from openai import APIConnectionError, APITimeoutError, NotFoundError


class TranslationError(RuntimeError):
    """Base class for every classified failure surfaced to callers."""

    code = "TRANSLATION_FAILED"
    default_message = "Translation failed"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"code": self.code, "message": self.message, "details": self.details}


class TranslationValidationError(TranslationError, ValueError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid translation request"


class BackendUnavailableError(TranslationError):
    code = "OLLAMA_NOT_RUNNING"
    default_message = "Ollama server is not running"


class ModelNotFoundError(TranslationError):
    code = "MODEL_NOT_FOUND"
    default_message = "Model not found"


class NoAvailableModelsError(ModelNotFoundError):
    default_message = "No available models found"


class NetworkError(TranslationError):
    code = "NETWORK_ERROR"
    default_message = "Network connection error"


class TranslationCancelledError(TranslationError):
    """Raised when an in-flight call is aborted through its cancellation token.

    Callers should not retry on this error.
    """

    code = "TRANSLATION_CANCELLED"
    default_message = "Translation cancelled"


class TranslationFailedError(TranslationError):
    code = "TRANSLATION_FAILED"
    default_message = "Translation failed"


class LanguageDetectionError(TranslationError):
    code = "LANGUAGE_DETECTION_FAILED"
    default_message = "Language detection failed"


def classify_error(error: BaseException, context: str) -> TranslationError:
    """Map a transport or SDK failure onto the translation error taxonomy.

    Errors that are already classified are returned untouched. Otherwise the
    openai exception type decides, and the message text is the fallback.
    """
    if isinstance(error, TranslationError):
        return error

    text = str(error)
    details = f"{context}: {text}"

    # APITimeoutError subclasses APIConnectionError, so it goes first.
    if isinstance(error, APITimeoutError):
        return NetworkError(details=details)
    if isinstance(error, APIConnectionError):
        return BackendUnavailableError(details=details)
    if isinstance(error, NotFoundError):
        return ModelNotFoundError(details=details)

    lowered = text.lower()
    if "econnrefused" in lowered or "connect" in lowered:
        return BackendUnavailableError(details=details)
    if "not found" in lowered or "model" in lowered:
        return ModelNotFoundError(details=details)
    if "network" in lowered or "timeout" in lowered:
        return NetworkError(details=details)
    return TranslationFailedError(details=details)


__all__ = [
    "BackendUnavailableError",
    "LanguageDetectionError",
    "ModelNotFoundError",
    "NetworkError",
    "NoAvailableModelsError",
    "TranslationCancelledError",
    "TranslationError",
    "TranslationFailedError",
    "TranslationValidationError",
    "classify_error",
]
