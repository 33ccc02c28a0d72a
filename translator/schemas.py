"""Pydantic wire schemas for the API boundary.

Field names on the wire are camelCase (``sourceLanguage``, ``modelName``)
so existing presentation-layer callers keep working; snake_case names are
accepted as well.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from translator.domain import SupportedLanguage


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranslateInput(WireModel):
    """Input of ``translate`` and ``translate_text``."""

    text: str = Field(..., min_length=1)
    source_language: Optional[SupportedLanguage] = None
    target_language: Optional[SupportedLanguage] = None
    model_name: Optional[str] = Field(None, min_length=1)


class TranslateOutput(WireModel):
    translated_text: str
    source_language: SupportedLanguage
    target_language: SupportedLanguage
    model_used: str
    timestamp: str


class DetectLanguageInput(WireModel):
    text: str = Field(..., min_length=1)


class ModelNameInput(WireModel):
    model_name: str = Field(..., min_length=1)


class AddModelInput(WireModel):
    name: str = Field(..., min_length=1)
    make_default: bool = False


class NamedModelInput(WireModel):
    name: str = Field(..., min_length=1)


class UpdateSettingsInput(WireModel):
    auto_detect_language: Optional[bool] = None
    default_model: Optional[str] = None


class ModelValidation(WireModel):
    name: str
    is_available: bool
    error: Optional[str] = None


__all__ = [
    "AddModelInput",
    "DetectLanguageInput",
    "ModelNameInput",
    "ModelValidation",
    "NamedModelInput",
    "TranslateInput",
    "TranslateOutput",
    "UpdateSettingsInput",
]
