# Per-language filler word tables
import logging
from typing import Dict, Iterable, Optional

from .types import ContextException, FillerWordTierTable, normalize_word
from . import de, en, es, fr, pt

logger = logging.getLogger(__name__)

FILLER_TABLES: Dict[str, FillerWordTierTable] = {
    "en": en.TABLE,
    "de": de.TABLE,
    "fr": fr.TABLE,
    "es": es.TABLE,
    "pt": pt.TABLE,
}

SUPPORTED_LANGUAGES = tuple(FILLER_TABLES)
DEFAULT_LANGUAGE = "en"


def resolve_language(language: Optional[str]) -> str:
    """Map a language tag ('en-US', 'pt_BR', 'auto') onto a supported table key."""
    if not language:
        return DEFAULT_LANGUAGE
    primary = language.strip().lower().replace("_", "-").split("-")[0]
    if primary in FILLER_TABLES:
        return primary
    if primary != "auto":
        logger.info(f"No filler table for language '{language}', falling back to English")
    return DEFAULT_LANGUAGE


def get_filler_table(
    language: Optional[str] = None,
    extra_words: Iterable[str] = (),
    extra_phrases: Iterable[str] = (),
) -> FillerWordTierTable:
    table = FILLER_TABLES[resolve_language(language)]
    return table.extended(extra_words, extra_phrases)


__all__ = [
    'ContextException',
    'FillerWordTierTable',
    'FILLER_TABLES',
    'SUPPORTED_LANGUAGES',
    'get_filler_table',
    'normalize_word',
    'resolve_language',
]
