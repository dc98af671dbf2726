"""
Keep-segment synthesis: turn intervals to remove into intervals to keep.

Pure functions only, no I/O. Output is always sorted ascending and
non-overlapping regardless of input order.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from .errors import EmptyResultError
from .models import KeepSegment, SilenceInterval, SpeechMistake

logger = logging.getLogger(__name__)

Span = Tuple[float, float]
RemovalLike = Union[Span, SilenceInterval, SpeechMistake, KeepSegment]


@dataclass(frozen=True)
class SegmentOptions:
    edge_padding: float = 0.015     # inward trim at each cut boundary
    min_segment: float = 0.1        # drop kept spans shorter than this
    merge_gap: float = 0.075        # join kept spans separated by at most this
    padding_before: float = 0.15    # outward expansion before speech
    padding_after: float = 0.2      # outward expansion after speech (speech trails off)


SILENCE_SEGMENT_DEFAULTS = SegmentOptions(
    edge_padding=0.015, min_segment=0.1, merge_gap=0.075, padding_before=0.15, padding_after=0.2,
)
MISTAKE_SEGMENT_DEFAULTS = SegmentOptions(
    edge_padding=0.015, min_segment=0.05, merge_gap=0.05, padding_before=0.0, padding_after=0.0,
)


def _as_span(item: RemovalLike) -> Span:
    if isinstance(item, tuple):
        return float(item[0]), float(item[1])
    return float(item.start), float(item.end)


def normalize_intervals(intervals: Iterable[RemovalLike], duration: float) -> List[Span]:
    """Clip to [0, duration], drop empty spans, sort and merge overlapping or touching spans."""
    spans = []
    for item in intervals:
        start, end = _as_span(item)
        start, end = max(0.0, start), min(duration, end)
        if end > start:
            spans.append((start, end))
    spans.sort()

    merged: List[List[float]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(s, e) for s, e in merged]


def _merge_close(spans: List[Span], gap: float) -> List[Span]:
    merged: List[List[float]] = []
    for start, end in spans:
        if merged and start - merged[-1][1] <= gap:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(s, e) for s, e in merged]


def synthesize_keep_segments(
    remove: Sequence[RemovalLike],
    duration: float,
    options: SegmentOptions = SILENCE_SEGMENT_DEFAULTS,
) -> List[KeepSegment]:
    """
    Complement of ``remove`` over [0, duration], shaped for natural-sounding cuts:

    1. trim ``edge_padding`` inward at every cut boundary
    2. drop spans shorter than ``min_segment``
    3. merge spans separated by at most ``merge_gap``
    4. expand outward by ``padding_before`` / ``padding_after``, clipped to the track
    5. re-merge spans that now overlap

    With nothing to remove the result is exactly ``[KeepSegment(0, duration)]``.
    May return an empty list when everything is removed; see ``ensure_keep_segments``.
    """
    if duration <= 0:
        return []
    removals = normalize_intervals(remove, duration)
    if not removals:
        return [KeepSegment(0.0, duration)]

    # Complement, with inward trim only where a cut was made
    kept: List[Span] = []
    cursor = 0.0
    for r_start, r_end in removals + [(duration, duration)]:
        if r_start > cursor:
            start = cursor + options.edge_padding if cursor > 0 else cursor
            end = r_start - options.edge_padding if r_start < duration else r_start
            if end > start:
                kept.append((start, end))
        cursor = max(cursor, r_end)

    kept = [s for s in kept if s[1] - s[0] >= options.min_segment]
    kept = _merge_close(kept, options.merge_gap)

    if options.padding_before > 0 or options.padding_after > 0:
        kept = [
            (max(0.0, s - options.padding_before), min(duration, e + options.padding_after))
            for s, e in kept
        ]
        kept = _merge_close(kept, 0.0)

    segments = [KeepSegment(s, e) for s, e in kept if e > s]
    logger.debug(
        f"Synthesized {len(segments)} keep segments from {len(removals)} removals "
        f"(kept {sum(s.duration for s in segments):.2f}s of {duration:.2f}s)"
    )
    return segments


def mistake_cut_intervals(mistakes: Iterable[SpeechMistake], confidence_threshold: float) -> List[Span]:
    """Spans of the mistakes confident enough to be cut."""
    return [(m.start, m.end) for m in mistakes if m.confidence >= confidence_threshold]


def removed_intervals(keep: Sequence[KeepSegment], duration: float) -> List[Span]:
    """Everything in [0, duration] not covered by ``keep``."""
    removed = []
    cursor = 0.0
    for seg in sorted(keep, key=lambda s: s.start):
        if seg.start > cursor:
            removed.append((cursor, seg.start))
        cursor = max(cursor, seg.end)
    if cursor < duration:
        removed.append((cursor, duration))
    return removed


def ensure_keep_segments(segments: Sequence[KeepSegment]) -> List[KeepSegment]:
    """Reject an empty keep list before anything is handed to the encoder."""
    if not segments:
        raise EmptyResultError("Segment synthesis produced no keep segments")
    return list(segments)
