"""Plain data types passed between the client, orchestrator and API boundary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Literal, Mapping, Optional, Tuple

SupportedLanguage = Literal["ja", "en"]
SUPPORTED_LANGUAGES: Tuple[str, ...] = ("ja", "en")

Message = Mapping[str, str]


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ERROR = "error"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Return an ISO-8601 UTC instant with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    source_language: Optional[str] = None
    target_language: Optional[str] = None
    model_name: Optional[str] = None


@dataclass(frozen=True)
class TranslationResponse:
    translated_text: str
    source_language: str
    target_language: str
    model_used: str
    timestamp: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "translatedText": self.translated_text,
            "sourceLanguage": self.source_language,
            "targetLanguage": self.target_language,
            "modelUsed": self.model_used,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ModelInfo:
    """A model descriptor as reported by the inference backend."""

    name: str
    created: Optional[int] = None
    owned_by: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "created": self.created, "ownedBy": self.owned_by}


@dataclass(frozen=True)
class DetectedLanguage:
    code: str
    confidence: float
    detected: bool

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "confidence": self.confidence, "detected": self.detected}


__all__ = [
    "ConnectionStatus",
    "DetectedLanguage",
    "Message",
    "ModelInfo",
    "SUPPORTED_LANGUAGES",
    "SupportedLanguage",
    "TranslationRequest",
    "TranslationResponse",
    "utc_timestamp",
]
