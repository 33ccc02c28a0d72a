"""Configuration helpers for the local translator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

try:
    from dotenv import load_dotenv
except ImportError as exc:  # pragma: no cover - import guard
    raise RuntimeError(
        "python-dotenv is required. Install dependencies via 'pip install -e .'."
    ) from exc

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_TIMEOUT_SECONDS = 120
DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "local-translator" / "settings.json"
DEFAULT_LOG_LEVEL = "INFO"
LANGUAGES_FILE = Path("config/languages.yml")


load_dotenv()


@dataclass(frozen=True)
class OllamaSettings:
    """Settings container for the Ollama inference client."""

    host: str = DEFAULT_OLLAMA_HOST
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    top_p: Optional[float] = None

    @property
    def base_url(self) -> str:
        """OpenAI-compatible endpoint exposed by the Ollama server."""
        return self.host.rstrip("/") + "/v1"

    @classmethod
    def from_env(cls) -> "OllamaSettings":
        host = os.getenv("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST
        if "://" not in host:
            host = f"http://{host}"
        timeout_seconds = _get_int("OLLAMA_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        top_p = _get_optional_float("OLLAMA_TOP_P")
        return cls(host=host, timeout_seconds=timeout_seconds, top_p=top_p)


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got: {raw}") from exc


def _get_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a float, got: {raw}") from exc


@dataclass(frozen=True)
class StoreSettings:
    """Where the registered models and default model are persisted."""

    path: Path = DEFAULT_SETTINGS_PATH

    @classmethod
    def from_env(cls) -> "StoreSettings":
        raw = os.getenv("TRANSLATOR_SETTINGS_PATH")
        if not raw:
            return cls()
        return cls(path=Path(raw).expanduser())


@dataclass(frozen=True)
class AppSettings:
    """Aggregates configuration needed by the container and CLI."""

    ollama: OllamaSettings
    store: StoreSettings
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def load(cls) -> "AppSettings":
        log_level = os.getenv("TRANSLATOR_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        return cls(OllamaSettings.from_env(), StoreSettings.from_env(), log_level)


def load_language_names(path: Path = LANGUAGES_FILE) -> Dict[str, str]:
    """Load language code to display name mapping from config/languages.yml."""
    if not path.exists():
        return {
            "en": "English",
            "ja": "Japanese",
        }

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict) or "languages" not in data:
            raise ValueError("languages.yml must contain a 'languages' mapping")
        return {str(k).lower(): str(v) for k, v in data["languages"].items()}
    except Exception as e:
        raise RuntimeError(f"Failed to load language configuration: {e}") from e


__all__ = ["AppSettings", "OllamaSettings", "StoreSettings", "load_language_names"]
