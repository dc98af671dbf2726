"""
Tiered rule-based mistake detection over a word-level transcript.

Cheap, deterministic and always available; the other detectors only
corroborate or extend what this one finds.
"""
import logging
from typing import List, Optional, Sequence, Set

from .filler_words import FillerWordTierTable, get_filler_table, normalize_word
from .models import MistakeKind, SpeechMistake, TranscriptWord

logger = logging.getLogger(__name__)

SOURCE = "rules"

TIER1_CONFIDENCE = 0.85
TIER2_CONFIDENCE = 0.65
TIER3_CONFIDENCE = 0.50
REPEATED_WORD_CONFIDENCE = 0.90
STUTTER_CONFIDENCE = 0.80
FILLER_PHRASE_CONFIDENCE = 0.65
REPEATED_PHRASE_CONFIDENCE = 0.85

TIER2_PAUSE = 0.3          # pause around a tier-2 word that marks it as a filler
TIER2_SHORT_WORD = 0.15    # ...or a word spoken this quickly
TIER3_PAUSE = 0.5
MAX_REPEAT_GAP = 1.0       # gap between two takes of a repeated phrase
REPEATED_PHRASE_LENGTHS = (4, 3, 2)

# Doubles that are usually deliberate ("very very", "that that")
EXCLUDE_DOUBLES = {'very', 'long', 'great', 'more', 'some', 'that', 'had'}


class _RuleScan:
    """One pass over a transcript. Each word is claimed by at most one record."""

    def __init__(self, words: Sequence[TranscriptWord], table: FillerWordTierTable):
        self.words = words
        self.table = table
        self.norm = [normalize_word(w.text) for w in words]
        self.claimed: Set[int] = set()
        self.mistakes: List[SpeechMistake] = []

    def free(self, first: int, last: int) -> bool:
        return all(self.norm[i] and i not in self.claimed for i in range(first, last + 1))

    def add(self, kind: MistakeKind, first: int, last: int, reason: str, confidence: float,
            text: Optional[str] = None):
        self.claimed.update(range(first, last + 1))
        if text is None:
            text = " ".join(w.text for w in self.words[first:last + 1])
        self.mistakes.append(SpeechMistake(
            kind=kind,
            start=self.words[first].start,
            end=self.words[last].end,
            text=text,
            reason=reason,
            confidence=confidence,
            sources=frozenset({SOURCE}),
        ))

    def gaps(self, i: int):
        """Pause before and after word i. A missing neighbour counts as no pause."""
        before = self.words[i].start - self.words[i - 1].end if i > 0 else 0.0
        after = self.words[i + 1].start - self.words[i].end if i + 1 < len(self.words) else 0.0
        return max(0.0, before), max(0.0, after)

    def filler_phrases(self):
        phrases = self.table.phrase_tokens()
        for i in range(len(self.words)):
            for tokens in phrases:
                last = i + len(tokens) - 1
                if last >= len(self.words) or tuple(self.norm[i:last + 1]) != tokens:
                    continue
                if self.free(i, last):
                    self.add(MistakeKind.FILLER_WORD, i, last,
                             f'Filler phrase: "{" ".join(tokens)}"', FILLER_PHRASE_CONFIDENCE)
                break

    def repeated_phrases(self):
        n_words = len(self.words)
        for i in range(n_words):
            for n in REPEATED_PHRASE_LENGTHS:
                if i + 2 * n > n_words:
                    continue
                first, second = self.norm[i:i + n], self.norm[i + n:i + 2 * n]
                if first != second or len(set(first)) == 1:
                    continue
                phrase = " ".join(first)
                if phrase in self.table.common_phrases_to_skip:
                    continue
                if self.words[i + n].start - self.words[i + n - 1].end > MAX_REPEAT_GAP:
                    continue
                if not self.free(i, i + n - 1):
                    continue
                self.add(MistakeKind.REPEATED_PHRASE, i, i + n - 1,
                         f'Repeated phrase "{phrase}" - removing first take', REPEATED_PHRASE_CONFIDENCE)
                break

    def repeated_words(self):
        for i in range(1, len(self.words)):
            word = self.norm[i]
            if word and word == self.norm[i - 1] and word not in EXCLUDE_DOUBLES and self.free(i - 1, i - 1):
                # The second take is usually the clearer one
                self.add(MistakeKind.REPEATED_WORD, i - 1, i - 1,
                         "Repeated word - removing first occurrence", REPEATED_WORD_CONFIDENCE,
                         text=f"{self.words[i - 1].text} {self.words[i].text}")

    def stutters(self):
        for i in range(1, len(self.words)):
            prev, cur = self.norm[i - 1], self.norm[i]
            if not prev or len(prev) >= len(cur) or not cur.startswith(prev):
                continue
            cut_off = self.words[i - 1].text.rstrip().endswith("-")
            if prev in self.table.standalone_words and not cut_off:
                continue
            if self.free(i - 1, i - 1):
                self.add(MistakeKind.STUTTER, i - 1, i - 1,
                         f'Stutter before "{self.words[i].text}"', STUTTER_CONFIDENCE)

    def _context_exempt(self, i: int) -> bool:
        exception = self.table.context_exceptions.get(self.norm[i])
        if exception is None:
            return False
        prev = self.norm[i - 1] if i > 0 else ""
        nxt = self.norm[i + 1] if i + 1 < len(self.words) else ""
        return prev in exception.previous or nxt in exception.following

    def single_fillers(self):
        for i, word in enumerate(self.words):
            if not self.free(i, i):
                continue
            tier = self.table.tier(word.text)
            if tier == 0 or self._context_exempt(i):
                continue

            before, after = self.gaps(i)
            if tier == 1:
                self.add(MistakeKind.FILLER_WORD, i, i, "Filler word (tier 1)", TIER1_CONFIDENCE)
            elif tier == 2:
                if max(before, after) > TIER2_PAUSE or word.duration < TIER2_SHORT_WORD:
                    self.add(MistakeKind.FILLER_WORD, i, i,
                             "Filler word (tier 2) set off by a pause", TIER2_CONFIDENCE)
            elif max(before, after) > TIER3_PAUSE:
                self.add(MistakeKind.FILLER_WORD, i, i,
                         "Filler word (tier 3) next to a long pause", TIER3_CONFIDENCE)


def detect_rule_mistakes(
    words: Sequence[TranscriptWord],
    table: Optional[FillerWordTierTable] = None,
    remove_filler_words: bool = True,
    remove_repeated_words: bool = True,
    remove_repeated_phrases: bool = True,
) -> List[SpeechMistake]:
    """Classify transcript words into filler, repetition and stutter mistakes."""
    if not words:
        return []
    scan = _RuleScan(words, table or get_filler_table())

    if remove_filler_words:
        scan.filler_phrases()
    if remove_repeated_phrases:
        scan.repeated_phrases()
    if remove_repeated_words:
        scan.repeated_words()
    if remove_filler_words:
        scan.single_fillers()
    if remove_repeated_words:
        scan.stutters()

    mistakes = sorted(scan.mistakes, key=lambda m: m.start)
    logger.info(f"Rule-based detection: {len(mistakes)} candidates in {len(words)} words")
    return mistakes
