import re

from .types import FillerWordTierTable

TABLE = FillerWordTierTable(
    language="de",
    name="German",

    tier1=frozenset({
        "äh", "ähh", "ääh", "ähm", "ähmm",
        "öh", "öhm",
        "hm", "hmm", "hmmm", "mm", "mmm",
    }),

    tier2=frozenset({
        "quasi",          # "sort of"
        "sozusagen",      # "so to speak"
        "halt",           # filler particle
        "eben",           # "just/exactly"
        "irgendwie",      # "somehow"
        "praktisch",      # "practically"
        "eigentlich",     # "actually"
        "grundsätzlich",  # "basically"
        "tatsächlich",    # "indeed"
    }),

    tier3=frozenset({
        "also", "ja", "naja", "gut", "genau", "ok", "okay",
        "ne", "nee", "oder", "so", "nun", "schon",
    }),

    patterns=(
        re.compile(r"ä+h+m?"),
        re.compile(r"ö+h+m?"),
        re.compile(r"[hm]+m*"),
    ),

    phrases=(
        "sag mal", "weißt du", "ich mein", "ich meine", "sage ich mal",
        "wie gesagt", "im grunde", "im prinzip", "na ja",
    ),

    common_phrases_to_skip=frozenset({
        "ich denke", "ich glaube", "es gibt", "man kann",
        "in der", "auf der", "mit dem", "für die",
        "das ist", "es ist", "ich bin", "wir sind",
    }),

    standalone_words=frozenset({
        "a", "an", "am", "da", "du", "er", "es", "ich", "im", "in", "ja", "so",
        "zu", "der", "die", "das", "den", "dem", "ein", "und", "mit", "wie", "wir",
    }),
)
