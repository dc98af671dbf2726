import re

from .types import ContextException, FillerWordTierTable

TABLE = FillerWordTierTable(
    language="en",
    name="English",

    # Pure hesitation sounds
    tier1=frozenset({
        "um", "uh", "umm", "uhh", "uhm", "uhhh", "ummm",
        "er", "err", "erm",
        "ah", "ahh",
        "hmm", "hm", "hmmm", "mm", "mmm", "mhm", "mmhm",
        "huh",
    }),

    # Usually fillers, but meaningful in some sentences
    tier2=frozenset({
        "like",
        "basically", "essentially", "literally", "actually", "technically",
        "obviously", "clearly", "honestly", "frankly", "totally", "definitely",
        "anyway", "anyways", "anyhow",
    }),

    # Meaningful words that are sometimes fillers
    tier3=frozenset({
        "so", "well", "now", "but", "just", "right",
        "okay", "ok", "alright",
        "yeah", "yep", "yup", "ya", "yah", "yes",
        "no", "nope", "nah",
        "really",
        "maybe", "perhaps", "probably",
    }),

    patterns=(
        re.compile(r"u+[hm]+"),      # um, uh, umm, uhh, uhhm
        re.compile(r"[ae]+h+m*"),    # ah, ahm, eh, ehm
        re.compile(r"[hm]+m*"),      # hmm, hmmm, mm, mmm, hm
        re.compile(r"e+r+m*"),       # er, err, erm
        re.compile(r"o+h+"),         # oh, ohh
        re.compile(r"u+h*"),         # u, uhh
    ),

    phrases=(
        "you know", "i mean", "kind of", "sort of", "you know what",
        "like i said", "to be honest", "at the end of the day", "if you will",
        "so to speak", "if that makes sense", "or whatever",
    ),

    common_phrases_to_skip=frozenset({
        "i think", "you know", "i mean", "and then", "but then",
        "so then", "and so", "but i", "and i", "so i",
        "i was", "it was", "that was", "this is", "that is",
        "there is", "here is", "i have", "you have", "we have",
        "i want", "you want", "we want", "i need", "you need",
        "we need", "to the", "in the", "on the", "at the",
        "for the", "with the", "from the", "of the", "is the",
        "are the", "was the", "were the",
    }),

    context_exceptions={
        # "I like pizza", "looks like rain", "like this"
        "like": ContextException(
            previous=frozenset({
                "i", "you", "we", "they", "would", "dont", "didnt", "do", "does",
                "id", "youd", "wed", "theyd", "really",
                "looks", "look", "sounds", "sound", "feels", "feel", "seems", "seem",
            }),
            following=frozenset({"this", "that", "these", "those", "a", "the"}),
        ),
    },

    standalone_words=frozenset({
        "a", "i", "an", "in", "on", "at", "to", "so", "we", "he", "be", "do",
        "go", "no", "it", "is", "as", "or", "if", "of", "me", "my", "us", "up",
        "by", "the", "and", "for", "but", "you", "our", "not", "can", "all",
        "her", "his", "was", "are", "one", "out", "get", "how", "now", "see",
        "way", "who", "any", "new", "its", "she", "too", "use",
    }),
)
