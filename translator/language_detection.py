"""Script-based detection for the two supported languages.

Counting kana/kanji against Latin letters is enough to tell Japanese from
English. It is not a general language identifier: any Latin-script text is
reported as English, so widening the supported set needs a statistical
detector in place of these regexes.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from translator.domain import SUPPORTED_LANGUAGES, DetectedLanguage

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 3
BASE_CONFIDENCE = 0.7
UNDECIDED_CONFIDENCE = 0.5
SHORT_TEXT_LENGTH = 10
LONG_TEXT_LENGTH = 50

HIRAGANA = re.compile(r"[\u3040-\u309F]")
KATAKANA = re.compile(r"[\u30A0-\u30FF]")
KANJI = re.compile(r"[\u4E00-\u9FAF]")
LATIN = re.compile(r"[a-zA-Z]")
COMMON_ENGLISH = re.compile(
    r"\b(the|and|is|to|of|in|it|you|that|he|was|for|on|are|as|with|his|they|at|be|or|an"
    r"|were|had|been|their)\b",
    re.IGNORECASE,
)


def other_language(code: str) -> str:
    """Return the other member of the two-language set."""
    if code not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language: {code}")
    return next(lang for lang in SUPPORTED_LANGUAGES if lang != code)


class LanguageDetector:
    """Guess whether a text is Japanese or English.

    Remembers the last confident guess and falls back to it for text that is
    too short or has no recognizable script.
    """

    def __init__(self, fallback: str = "en") -> None:
        self._last_detected = fallback

    def detect_language(self, text: str) -> DetectedLanguage:
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return DetectedLanguage(code=self._last_detected, confidence=0.0, detected=False)

        code = self._guess(text)
        if code is None:
            return DetectedLanguage(
                code=self._last_detected, confidence=UNDECIDED_CONFIDENCE, detected=False
            )

        self._last_detected = code
        confidence = self._confidence(text, code)
        logger.debug(f"Detected {code} with confidence {confidence:.2f}")
        return DetectedLanguage(code=code, confidence=confidence, detected=True)

    def is_language_supported(self, code: str) -> bool:
        return code in SUPPORTED_LANGUAGES

    def get_supported_languages(self) -> List[str]:
        return list(SUPPORTED_LANGUAGES)

    @staticmethod
    def _guess(text: str) -> Optional[str]:
        japanese = sum(len(p.findall(text)) for p in (HIRAGANA, KATAKANA, KANJI))
        latin = len(LATIN.findall(text))
        if japanese == 0 and latin == 0:
            return None
        # Any kana or kanji outweighs romaji, which is common in mixed Japanese text.
        return "ja" if japanese * 2 >= latin else "en"

    @staticmethod
    def _confidence(text: str, code: str) -> float:
        confidence = BASE_CONFIDENCE

        if code == "ja":
            kinds = [bool(p.search(text)) for p in (HIRAGANA, KATAKANA, KANJI)]
            if any(kinds):
                confidence += 0.2
            confidence += sum(kinds) * 0.05

        if code == "en":
            if LATIN.search(text):
                confidence += 0.1
            if COMMON_ENGLISH.search(text):
                confidence += 0.2

        if len(text) < SHORT_TEXT_LENGTH:
            confidence *= 0.8
        elif len(text) > LONG_TEXT_LENGTH:
            confidence = min(confidence * 1.1, 1.0)

        return max(0.0, min(1.0, confidence))


__all__ = ["LanguageDetector", "other_language"]
