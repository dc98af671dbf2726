"""
Reconciliation of candidate mistakes from several detectors.

Runs once, sequentially, after all detectors have returned. Inputs are
never mutated; widened or boosted records are new copies.
"""
import logging
from dataclasses import replace
from typing import List, Sequence

from .models import SpeechMistake

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.95
CORROBORATION_BOOST = 0.10


def boosted_confidence(existing: float, candidate: float) -> float:
    """Confidence after two detectors agree: never below either input, never above 0.95."""
    return max(existing, candidate, min(MAX_CONFIDENCE, max(existing, candidate) + CORROBORATION_BOOST))


def _absorb(record: SpeechMistake, other: SpeechMistake, boost: bool) -> SpeechMistake:
    if boost:
        confidence = boosted_confidence(record.confidence, other.confidence)
    else:
        confidence = max(record.confidence, other.confidence)
    return replace(
        record,
        start=min(record.start, other.start),
        end=max(record.end, other.end),
        confidence=confidence,
        sources=record.sources | other.sources,
    )


def merge_mistakes(base: Sequence[SpeechMistake], *others: Sequence[SpeechMistake]) -> List[SpeechMistake]:
    """
    Start from ``base`` (the rule-based list) and fold in every other
    detector's candidates. An overlapping candidate widens the existing
    record to the union of both spans and, if it comes from a detector not
    already behind that record, boosts its confidence. Records that overlap
    after widening are folded together so no span is cut twice.
    Result is sorted by start.
    """
    merged: List[SpeechMistake] = sorted(base, key=lambda m: m.start)
    appended = 0
    boosted = 0

    for candidates in others:
        for candidate in candidates:
            hit = next((i for i, m in enumerate(merged) if m.overlaps(candidate)), None)
            if hit is None:
                merged.append(candidate)
                appended += 1
                continue

            record = merged[hit]
            corroborates = not candidate.sources <= record.sources
            merged[hit] = _absorb(record, candidate, boost=corroborates)
            boosted += int(corroborates)

            # The widened record may now reach neighbours
            widened = merged[hit]
            rest = []
            for i, m in enumerate(merged):
                if i == hit:
                    continue
                if widened.overlaps(m):
                    widened = _absorb(widened, m, boost=False)
                else:
                    rest.append(m)
            merged = rest + [widened]

    merged.sort(key=lambda m: m.start)
    logger.info(
        f"Merged mistakes: {len(base)} base, {appended} appended, {boosted} corroborated, "
        f"{len(merged)} total"
    )
    return merged
