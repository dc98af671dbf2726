"""
Language-specific filler word tables.

Words are split into three tiers by how confidently they can be classified
as fillers without additional context:

  Tier 1 - always fillers (um, uh, hmm). Safe to remove in any context.
  Tier 2 - usually fillers (basically, literally, actually). Need a light
           context check (a pause around the word, or a rushed delivery).
  Tier 3 - context-dependent (so, well, right, just). Only flagged with
           strong evidence (a long pause on at least one side).
"""
import re
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Tuple


def normalize_word(word: str) -> str:
    """Lowercase and strip everything but letters and digits."""
    return re.sub(r"[\W_]", "", word.lower())


@dataclass(frozen=True)
class ContextException:
    """Neighbouring words that make a filler candidate meaningful ("I like this")."""
    previous: FrozenSet[str] = frozenset()
    following: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class FillerWordTierTable:
    language: str
    name: str
    tier1: FrozenSet[str]
    tier2: FrozenSet[str]
    tier3: FrozenSet[str]
    patterns: Tuple[re.Pattern, ...] = ()
    phrases: Tuple[str, ...] = ()
    common_phrases_to_skip: FrozenSet[str] = frozenset()
    context_exceptions: Dict[str, ContextException] = field(default_factory=dict)
    # Real words that are also prefixes of longer words ("a" / "about");
    # never read these as stutter fragments.
    standalone_words: FrozenSet[str] = frozenset()

    def tier(self, word: str) -> int:
        """Return the filler tier (1-3) of a word, or 0 if it is not a filler."""
        normalized = normalize_word(word)
        if not normalized:
            return 0
        if normalized in self.tier1:
            return 1
        for pattern in self.patterns:
            if pattern.fullmatch(normalized):
                return 1
        if normalized in self.tier2:
            return 2
        if normalized in self.tier3:
            return 3
        return 0

    def is_filler(self, word: str) -> bool:
        return self.tier(word) > 0

    def phrase_tokens(self) -> Tuple[Tuple[str, ...], ...]:
        """Filler phrases as normalized token tuples, longest first."""
        tokens = [tuple(normalize_word(t) for t in p.split()) for p in self.phrases]
        tokens = [t for t in tokens if t and all(t)]
        return tuple(sorted(set(tokens), key=len, reverse=True))

    def extended(self, extra_words: Iterable[str] = (), extra_phrases: Iterable[str] = ()) -> "FillerWordTierTable":
        """Copy of this table with user-supplied filler words (tier 1) and phrases."""
        words = set()
        phrases = list(self.phrases)
        for w in extra_words:
            if len(w.split()) > 1:
                phrases.append(w.strip().lower())
            elif normalize_word(w):
                words.add(normalize_word(w))
        for p in extra_phrases:
            if p.strip():
                phrases.append(p.strip().lower())
        if not words and len(phrases) == len(self.phrases):
            return self
        return replace(
            self,
            tier1=self.tier1 | frozenset(words),
            tier2=self.tier2 - frozenset(words),
            tier3=self.tier3 - frozenset(words),
            phrases=tuple(phrases),
        )
