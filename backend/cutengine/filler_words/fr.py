import re

from .types import FillerWordTierTable

TABLE = FillerWordTierTable(
    language="fr",
    name="French",

    tier1=frozenset({
        "euh", "euuh", "euhh", "heu", "heuu",
        "hum", "humm", "hmm", "hm",
        "ah", "ahh", "oh", "ohh",
        "ben", "beh",
    }),

    tier2=frozenset({
        "genre",        # "like"
        "bah",          # hesitation
        "quoi",         # sentence-ending filler
        "franchement",  # "honestly"
        "clairement",   # "clearly"
        "justement",    # "exactly" as filler
        "carrément",    # "totally"
    }),

    tier3=frozenset({
        "voilà", "bon", "donc", "alors", "enfin", "disons",
        "ouais", "oui", "non", "effectivement",
    }),

    patterns=(
        re.compile(r"eu+h+"),
        re.compile(r"he+u+"),
        re.compile(r"hu+m+"),
        re.compile(r"[hm]+m*"),
        re.compile(r"be+[hn]"),
    ),

    phrases=(
        "en fait", "du coup", "tu vois", "tu sais", "je veux dire",
        "en gros", "comment dire", "c'est-à-dire", "si tu veux",
    ),

    common_phrases_to_skip=frozenset({
        "je pense", "je crois", "il y a", "c'est",
        "je suis", "on est", "il faut", "on peut",
        "dans le", "sur le", "pour le", "avec le",
    }),

    standalone_words=frozenset({
        "a", "à", "c", "de", "du", "en", "et", "il", "j", "je", "l", "la", "le",
        "les", "ma", "me", "mon", "ne", "on", "ou", "un", "une", "y",
    }),
)
