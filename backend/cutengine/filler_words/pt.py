import re

from .types import FillerWordTierTable

TABLE = FillerWordTierTable(
    language="pt",
    name="Portuguese",

    tier1=frozenset({
        "éh", "éhh",
        "ah", "ahh",
        "hm", "hmm", "hmmm",
        "mm", "mmm",
        "ahn",
        "uhm", "um",  # "um" also means "one"; as a short sound it is a filler
    }),

    tier2=frozenset({
        "tipo",          # "like"
        "basicamente",   # "basically"
        "literalmente",  # "literally"
        "obviamente",    # "obviously"
        "realmente",     # "really"
        "sinceramente",  # "honestly"
    }),

    tier3=frozenset({
        "né", "então", "bom", "bem", "enfim", "pois", "olha",
        "tá", "está", "sim", "não", "cara", "assim",
    }),

    patterns=(
        re.compile(r"é+h+"),
        re.compile(r"a+h+"),
        re.compile(r"[hm]+m*"),
        re.compile(r"a+hn?"),
    ),

    phrases=(
        "sabe", "você sabe", "quer dizer", "na verdade",
        "por assim dizer", "digamos assim", "como eu disse",
    ),

    common_phrases_to_skip=frozenset({
        "eu acho", "eu penso", "a gente", "tem que",
        "no que", "do que", "para o", "com o",
        "isso é", "eu sou", "nós somos",
    }),

    standalone_words=frozenset({
        "a", "ao", "as", "da", "de", "do", "e", "é", "em", "eu", "na", "no",
        "o", "os", "se", "um", "uma",
    }),
)
