"""Unit tests for LanguageDetector."""

import pytest

from translator.language_detection import LanguageDetector, other_language


@pytest.fixture
def detector():
    return LanguageDetector()


class TestDetectLanguage:
    """Test cases for detect_language."""

    def test_japanese(self, detector):
        """Mixed kana and kanji is Japanese with high confidence."""
        result = detector.detect_language("今日はとても良い天気ですね。カフェに行きましょう。")
        assert result.code == "ja"
        assert result.detected is True
        assert result.confidence >= 0.9

    def test_english(self, detector):
        """Plain English with common words is English."""
        result = detector.detect_language("The weather is lovely and I want to go for a walk.")
        assert result.code == "en"
        assert result.detected is True
        assert result.confidence == pytest.approx(1.0)

    def test_other_latin_script_reads_as_english(self, detector):
        """Only scripts are compared, so any Latin-script text maps to English."""
        result = detector.detect_language("Bonjour tout le monde, comment allez-vous ?")
        assert result.code == "en"
        assert result.detected is True

    def test_japanese_with_romaji(self, detector):
        """A little Latin text does not outweigh Japanese script."""
        result = detector.detect_language("Pythonでプログラムを書きます")
        assert result.code == "ja"

    def test_short_text_penalized(self, detector):
        """Short inputs are detected with reduced confidence."""
        result = detector.detect_language("hello")
        assert result.code == "en"
        assert result.confidence == pytest.approx(0.8 * 0.8)

    def test_too_short(self, detector):
        """Inputs under the minimum length are not detected."""
        result = detector.detect_language("  a ")
        assert result.detected is False
        assert result.confidence == 0.0
        assert result.code == "en"

    def test_empty(self, detector):
        """Empty input is not detected."""
        assert detector.detect_language("").detected is False

    def test_no_script_falls_back_to_last(self, detector):
        """Digits and punctuation reuse the last confident guess."""
        detector.detect_language("こんにちは、元気ですか")

        result = detector.detect_language("12345 !!!")

        assert result.code == "ja"
        assert result.detected is False
        assert result.confidence == 0.5

    def test_short_text_uses_last_detected(self, detector):
        """Too-short text after a detection reports the previous language."""
        detector.detect_language("ありがとうございます")
        assert detector.detect_language("ok").code == "ja"

    def test_confidence_bounded(self, detector):
        """Confidence never leaves the unit interval."""
        text = "これは長い日本語の文章です。カタカナも漢字もひらがなも入っています。" * 3
        result = detector.detect_language(text)
        assert 0.0 <= result.confidence <= 1.0

    def test_to_dict(self, detector):
        """The wire form carries code, confidence and detected flag."""
        payload = detector.detect_language("Hello there, how are you?").to_dict()
        assert set(payload) == {"code", "confidence", "detected"}


class TestSupportedLanguages:
    """Test cases for the supported-language helpers."""

    def test_supported(self, detector):
        """Only Japanese and English are supported."""
        assert detector.get_supported_languages() == ["ja", "en"]
        assert detector.is_language_supported("ja") is True
        assert detector.is_language_supported("fr") is False

    def test_other_language(self):
        """Each supported language maps to the other one."""
        assert other_language("ja") == "en"
        assert other_language("en") == "ja"

    def test_other_language_unsupported(self):
        """Unsupported codes are rejected."""
        with pytest.raises(ValueError, match="Unsupported language"):
            other_language("de")
