"""OVH Diagnostic Bot — Internationalization.

YAML message catalogs (French and English) and the translate() helper
used by every formatter.
"""

from src.i18n.translator import (
    DEFAULT_LANGUAGE,
    Translator,
    format_date,
    get_translator,
    translate,
)

__all__ = [
    "DEFAULT_LANGUAGE",
    "Translator",
    "format_date",
    "get_translator",
    "translate",
]
