"""
Cleanup-diff mistake detection.

The transcript is sent to a cleanup service that may only delete words.
An LCS alignment between the original and the cleaned tokens recovers
exactly which words were dropped, so the service never has to report
indices or timestamps itself.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from .errors import ServiceError
from .filler_words import FillerWordTierTable, get_filler_table, normalize_word
from .models import MistakeKind, SpeechMistake, TranscriptWord

logger = logging.getLogger(__name__)

SOURCE = "cleanup"

CHUNK_SIZE = 200
CHUNK_OVERLAP = 20
MAX_WORKERS = 4
# A response keeping fewer tokens than this share of its chunk is discarded
MIN_KEPT_RATIO = 0.5

CORRECTION_MARKERS = {"sorry", "mean", "actually", "rather", "no", "wait", "scratch"}

CATEGORY_INSTRUCTIONS: Dict[str, str] = {
    "filler_words": "Filler words and hesitations (um, uh, like, you know, basically) used as verbal padding.",
    "repeated_words": "Words accidentally said twice in a row (the the, I I), and stuttered partial words.",
    "repeated_phrases": "Phrases accidentally repeated back to back. Keep the last take.",
    "false_starts": "Sentences that are abandoned and restarted. Keep the restarted version.",
    "self_corrections": "Words the speaker immediately corrects (fifty, sorry, sixty). Keep the correction.",
}

AGGRESSIVENESS_INSTRUCTIONS = {
    "conservative": "Be conservative: only remove clear, obvious mistakes.",
    "moderate": "Remove what a professional editor would remove.",
    "aggressive": "Be thorough: remove anything that is likely a mistake.",
}


class CleanupService(Protocol):
    def clean(self, text: str, instruction: str) -> str:
        """Return ``text`` with mistakes removed, using only its words in their original order."""
        ...


def build_instruction(categories: Iterable[str], aggressiveness: str = "moderate") -> str:
    """Instruction text naming only the enabled removal categories."""
    lines = [
        "You are editing a spoken-word transcript. Remove speech mistakes from it.",
        "",
        "REMOVE ONLY:",
    ]
    for name in categories:
        if name in CATEGORY_INSTRUCTIONS:
            lines.append(f"- {CATEGORY_INSTRUCTIONS[name]}")
    lines += [
        "",
        AGGRESSIVENESS_INSTRUCTIONS.get(aggressiveness, AGGRESSIVENESS_INSTRUCTIONS["moderate"]),
        "",
        "RULES:",
        "- Only delete words. Never add, reword or reorder anything.",
        "- Do not remove intentional emphasis or meaningful repetition.",
        "- Return ONLY the cleaned transcript text, nothing else.",
    ]
    return "\n".join(lines)


def tokenize(text: str) -> List[str]:
    return [t for t in (normalize_word(w) for w in text.split()) if t]


def lcs_removed_indices(original: Sequence[str], cleaned: Sequence[str]) -> Set[int]:
    """
    Indices of ``original`` tokens absent from ``cleaned`` under a longest
    common subsequence alignment. Among equal duplicates the earlier one is
    kept, so "the the" -> "the" removes the second.
    """
    n, m = len(original), len(cleaned)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        row, prev_row = dp[i], dp[i - 1]
        for j in range(1, m + 1):
            if original[i - 1] == cleaned[j - 1]:
                row[j] = prev_row[j - 1] + 1
            else:
                row[j] = max(prev_row[j], row[j - 1])

    removed = set()
    i, j = n, m
    while i > 0:
        if j == 0 or dp[i - 1][j] == dp[i][j]:
            removed.add(i - 1)
            i -= 1
        elif original[i - 1] == cleaned[j - 1]:
            i -= 1
            j -= 1
        else:
            j -= 1
    return removed


def chunk_ranges(n_words: int, size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[Tuple[int, int]]:
    """Half-open word ranges covering the transcript, consecutive ranges sharing ``overlap`` words."""
    if n_words <= size:
        return [(0, n_words)] if n_words else []
    step = max(1, size - overlap)
    ranges = []
    start = 0
    while True:
        end = min(n_words, start + size)
        ranges.append((start, end))
        if end == n_words:
            return ranges
        start += step


def chunk_removals(tokens: Sequence[str], cleaned_text: str) -> Optional[Set[int]]:
    """Removed positions within one chunk, or None if the response is not a plausible cleanup."""
    cleaned = tokenize(cleaned_text)
    if len(cleaned) < len(tokens) * MIN_KEPT_RATIO:
        return None
    return lcs_removed_indices(tokens, cleaned)


def consensus_removed(n_words: int, votes: Sequence[Tuple[Tuple[int, int], Optional[Set[int]]]]) -> Set[int]:
    """
    A word is removed only if every chunk covering it removed it. Invalid
    chunks (None) vote "keep" for all their words.
    """
    removed_votes = [0] * n_words
    coverage = [0] * n_words
    for (start, end), removed in votes:
        for idx in range(start, end):
            coverage[idx] += 1
            if removed is not None and (idx - start) in removed:
                removed_votes[idx] += 1
    return {i for i in range(n_words) if coverage[i] and removed_votes[i] == coverage[i]}


def earliest_take(tokens: Sequence[str], first: int, last: int) -> Tuple[int, int]:
    """
    Shift a removed run onto the identical take right before it, if any.
    The alignment drops the later of two equal takes; the rule detector
    marks the earlier one, and both must point at the same words.
    """
    n = last - first + 1
    while first - n >= 0 and list(tokens[first - n:first]) == list(tokens[first:last + 1]):
        first, last = first - n, last - n
    return first, last


def group_spans(indices: Iterable[int]) -> List[Tuple[int, int]]:
    """Group indices into runs of consecutive values, as inclusive (first, last) pairs."""
    spans: List[List[int]] = []
    for idx in sorted(indices):
        if spans and idx == spans[-1][1] + 1:
            spans[-1][1] = idx
        else:
            spans.append([idx, idx])
    return [(a, b) for a, b in spans]


@dataclass(frozen=True)
class SpanClass:
    kind: MistakeKind
    confidence: float
    reason: str


def classify_span(tokens: Sequence[str], first: int, last: int, table: FillerWordTierTable) -> SpanClass:
    span = list(tokens[first:last + 1])
    length = len(span)
    following = list(tokens[last + 1:last + 1 + length])
    tiers = [table.tier(t) for t in span]

    if all(t == 1 for t in tiers):
        return SpanClass(MistakeKind.FILLER_WORD, 0.85, "Hesitation removed by cleanup")
    if all(t > 0 for t in tiers):
        return SpanClass(MistakeKind.FILLER_WORD, 0.75, "Filler removed by cleanup")

    if length == 1:
        word = span[0]
        prev = tokens[first - 1] if first > 0 else None
        nxt = tokens[last + 1] if last + 1 < len(tokens) else None
        if word == nxt or word == prev:
            return SpanClass(MistakeKind.REPEATED_WORD, 0.90, "Repeated word removed by cleanup")
        if nxt and len(word) < len(nxt) and nxt.startswith(word):
            return SpanClass(MistakeKind.STUTTER, 0.80, "Stutter removed by cleanup")
        return SpanClass(MistakeKind.FALSE_START, 0.75, "Abandoned word removed by cleanup")

    if span == following:
        return SpanClass(MistakeKind.REPEATED_PHRASE, 0.85, "Repeated phrase removed by cleanup")
    if CORRECTION_MARKERS.intersection(span):
        return SpanClass(MistakeKind.SELF_CORRECTION, 0.80, "Self-correction removed by cleanup")
    if following and following[0] == span[0]:
        return SpanClass(MistakeKind.FALSE_START, 0.80, "Restarted sentence removed by cleanup")
    return SpanClass(MistakeKind.FALSE_START, 0.75, "Abandoned phrase removed by cleanup")


# Which configuration category each mistake kind belongs to
KIND_CATEGORY = {
    MistakeKind.FILLER_WORD: "filler_words",
    MistakeKind.REPEATED_WORD: "repeated_words",
    MistakeKind.STUTTER: "repeated_words",
    MistakeKind.REPEATED_PHRASE: "repeated_phrases",
    MistakeKind.FALSE_START: "false_starts",
    MistakeKind.SELF_CORRECTION: "self_corrections",
}


def detect_cleanup_mistakes(
    words: Sequence[TranscriptWord],
    service: CleanupService,
    categories: Sequence[str] = tuple(CATEGORY_INSTRUCTIONS),
    aggressiveness: str = "moderate",
    table: Optional[FillerWordTierTable] = None,
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[SpeechMistake]:
    """
    Dispatch transcript chunks to ``service`` concurrently and turn the words
    it dropped into mistakes. Raises ServiceError only if every chunk failed.
    """
    if not words or not categories:
        return []
    table = table or get_filler_table()
    tokens = [normalize_word(w.text) for w in words]
    instruction = build_instruction(categories, aggressiveness)
    ranges = chunk_ranges(len(words), chunk_size, overlap)

    def run_chunk(bounds: Tuple[int, int]) -> Optional[Set[int]]:
        start, end = bounds
        text = " ".join(w.text for w in words[start:end])
        try:
            cleaned = service.clean(text, instruction)
        except ServiceError as e:
            logger.warning(f"Cleanup chunk {start}-{end} failed: {e}")
            return None
        removed = chunk_removals(tokens[start:end], cleaned)
        if removed is None:
            logger.warning(f"Cleanup chunk {start}-{end} dropped too much text, ignoring it")
        return removed

    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(ranges))) as pool:
        results = list(pool.map(run_chunk, ranges))

    if all(r is None for r in results):
        raise ServiceError(f"All {len(ranges)} cleanup chunks failed")

    removed = {i for i in consensus_removed(len(words), list(zip(ranges, results))) if tokens[i]}
    mistakes = []
    spans = sorted({earliest_take(tokens, first, last) for first, last in group_spans(removed)})
    for first, last in spans:
        cls = classify_span(tokens, first, last, table)
        if KIND_CATEGORY[cls.kind] not in categories:
            continue
        mistakes.append(SpeechMistake(
            kind=cls.kind,
            start=words[first].start,
            end=words[last].end,
            text=" ".join(w.text for w in words[first:last + 1]),
            reason=cls.reason,
            confidence=cls.confidence,
            sources=frozenset({SOURCE}),
        ))

    logger.info(
        f"Cleanup-diff detection: {len(removed)} words removed across {len(ranges)} chunks, "
        f"{len(mistakes)} candidates"
    )
    return mistakes
