import re

from .types import FillerWordTierTable

TABLE = FillerWordTierTable(
    language="es",
    name="Spanish",

    tier1=frozenset({
        "eh", "ehh", "eeh",
        "ah", "ahh",
        "em", "emm",
        "um", "umm",
        "mm", "mmm", "hmm",
    }),

    tier2=frozenset({
        "tipo",          # "like" (informal)
        "este",          # hesitation "uh" in Latin American Spanish, also "this"
        "básicamente",   # "basically"
        "literalmente",  # "literally"
        "obviamente",    # "obviously"
        "digamos",       # "let's say"
    }),

    tier3=frozenset({
        "bueno", "pues", "entonces", "mira", "oye", "vale", "dale",
        "sí", "no", "claro", "verdad",
    }),

    patterns=(
        re.compile(r"e+h+"),
        re.compile(r"a+h+"),
        re.compile(r"e+m+"),
        re.compile(r"u+m+"),
        re.compile(r"[hm]+m*"),
    ),

    phrases=(
        "o sea", "la verdad", "es que", "sabes", "tú sabes", "me entiendes",
        "por así decirlo", "cómo se dice", "la cosa es que", "en plan",
    ),

    common_phrases_to_skip=frozenset({
        "yo creo", "es que", "hay que", "se puede",
        "en el", "de la", "por el", "con el",
        "lo que", "es un", "es una", "yo soy",
    }),

    standalone_words=frozenset({
        "a", "al", "de", "del", "el", "en", "es", "la", "las", "lo", "los",
        "me", "mi", "no", "se", "si", "su", "te", "tu", "un", "una", "y", "yo",
    }),
)
