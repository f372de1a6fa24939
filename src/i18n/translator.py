"""OVH Diagnostic Bot — Message Catalog Translator.

Loads one YAML catalog per locale from src/i18n/locales/ and resolves
message keys with positional str.format() arguments.

Lookup order for a key:
  1. the exact locale (``fr_FR``; ``fr-FR`` is accepted too)
  2. any catalog sharing the language (``fr`` → ``fr_FR``)
  3. the default locale
  4. the key itself
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Optional

import yaml

from src.utils.logger import get_logger

logger = get_logger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent / "locales"
DEFAULT_LANGUAGE = "en_GB"
_DEFAULT_DATE_FORMAT = "%Y-%m-%d"


class Translator:
    """Resolves message keys against per-locale YAML catalogs.

    Attributes:
        locales_dir: Directory holding ``<locale>.yaml`` files.
        default_locale: Locale used when a key is missing elsewhere.
    """

    def __init__(
        self,
        locales_dir: Path = LOCALES_DIR,
        default_locale: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.locales_dir = locales_dir
        self.default_locale = default_locale
        self._catalogs: dict[str, dict[str, str]] = {}
        self._load()

    def _load(self) -> None:
        for path in sorted(self.locales_dir.glob("*.yaml")):
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            self._catalogs[path.stem] = {str(k): str(v) for k, v in data.items()}
        logger.debug(
            "Loaded %d locale catalogs: %s",
            len(self._catalogs), ", ".join(self._catalogs),
        )

    @property
    def supported_locales(self) -> list[str]:
        return sorted(self._catalogs)

    def _resolve_locale(self, locale: Optional[str]) -> str:
        if not locale:
            return self.default_locale
        locale = locale.replace("-", "_")
        if locale in self._catalogs:
            return locale
        language = locale.split("_")[0].lower()
        for name in self.supported_locales:
            if name.split("_")[0].lower() == language:
                return name
        return self.default_locale

    def lookup(self, key: str, locale: Optional[str]) -> str:
        """Return the raw template for *key*, without formatting."""
        resolved = self._resolve_locale(locale)
        for name in (resolved, self.default_locale):
            template = self._catalogs.get(name, {}).get(key)
            if template is not None:
                return template
        logger.warning("Missing translation key '%s' (%s)", key, locale)
        return key

    def translate(self, key: str, locale: Optional[str], *args: Any) -> str:
        """Translate *key* for *locale*, formatting positional *args*."""
        template = self.lookup(key, locale)
        if not args:
            return template
        return template.format(*args)

    def format_date(self, value: date, locale: Optional[str]) -> str:
        """Format a date with the locale's ``dateFormat`` pattern."""
        resolved = self._resolve_locale(locale)
        pattern = self._catalogs.get(resolved, {}).get("dateFormat", _DEFAULT_DATE_FORMAT)
        return value.strftime(pattern)


_translator: Optional[Translator] = None


def get_translator() -> Translator:
    """Return the process-wide translator, loading catalogs on first use."""
    global _translator
    if _translator is None:
        _translator = Translator()
    return _translator


def translate(key: str, locale: Optional[str], *args: Any) -> str:
    """Module-level shortcut for ``get_translator().translate``."""
    return get_translator().translate(key, locale, *args)


def format_date(value: date, locale: Optional[str]) -> str:
    """Module-level shortcut for ``get_translator().format_date``."""
    return get_translator().format_date(value, locale)
