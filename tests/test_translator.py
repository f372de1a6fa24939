from __future__ import annotations

from datetime import date

import pytest

from src.i18n.translator import LOCALES_DIR, Translator


@pytest.fixture
def translator(tmp_path) -> Translator:
    (tmp_path / "en_GB.yaml").write_text(
        'dateFormat: "%d/%m/%Y"\ngreeting: "Hello {0}"\nonlyEnglish: "English"\n',
        encoding="utf-8",
    )
    (tmp_path / "fr_FR.yaml").write_text(
        'dateFormat: "%d/%m/%Y"\ngreeting: "Bonjour {0}"\n',
        encoding="utf-8",
    )
    return Translator(tmp_path, default_locale="en_GB")


def test_exact_locale(translator) -> None:
    assert translator.translate("greeting", "fr_FR", "Ada") == "Bonjour Ada"


@pytest.mark.parametrize("locale", ["fr-FR", "fr", "fr_CA"])
def test_same_language_fallback(translator, locale) -> None:
    assert translator.translate("greeting", locale, "Ada") == "Bonjour Ada"


def test_missing_key_falls_back_to_default_locale(translator) -> None:
    assert translator.translate("onlyEnglish", "fr_FR") == "English"


def test_unknown_locale_uses_default(translator) -> None:
    assert translator.translate("greeting", "de_DE", "Ada") == "Hello Ada"
    assert translator.translate("greeting", None, "Ada") == "Hello Ada"


def test_unknown_key_returns_key(translator) -> None:
    assert translator.translate("nope", "fr_FR") == "nope"


def test_format_date(translator) -> None:
    assert translator.format_date(date(2024, 1, 11), "fr_FR") == "11/01/2024"


def test_shipped_catalogs_have_the_same_keys() -> None:
    translator = Translator(LOCALES_DIR)
    assert translator.supported_locales == ["en_GB", "fr_FR"]
    english = set(translator._catalogs["en_GB"])
    french = set(translator._catalogs["fr_FR"])
    assert english == french
