"""
Acoustic corroboration: short voiced bursts between silences are typical of
hesitation sounds. They confirm transcript fillers, and can reveal fillers
the transcription service dropped.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .audio_analyzer import AudioAnalyzer
from .filler_words import FillerWordTierTable, get_filler_table
from .models import MistakeKind, SpeechMistake, TranscriptWord

logger = logging.getLogger(__name__)

SOURCE = "acoustic"

HESITATION_SILENCE_DB = -40.0
HESITATION_MIN_SILENCE = 0.08
MIN_VOICED = 0.1
MAX_VOICED = 0.9
# A leading voiced run counts only if the first silence starts later than this
LEADING_SPEECH_MIN = 0.12
OVERLAP_TOLERANCE = 0.1
UNTRANSCRIBED_MIN = 0.15
UNTRANSCRIBED_MAX = 0.6

TIER_CONFIDENCE = {1: 0.95, 2: 0.80, 3: 0.65}
UNTRANSCRIBED_CONFIDENCE = 0.35


@dataclass(frozen=True)
class VoicedRegion:
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


def find_short_voiced_regions(
    silences: Sequence[Tuple[float, float]],
    min_duration: float = MIN_VOICED,
    max_duration: float = MAX_VOICED,
) -> List[VoicedRegion]:
    """Voiced runs between consecutive silences whose length fits a hesitation sound."""
    silences = sorted(silences)
    regions = []
    if silences and silences[0][0] > LEADING_SPEECH_MIN:
        regions.append(VoicedRegion(0.0, silences[0][0]))
    for (_, prev_end), (next_start, _) in zip(silences, silences[1:]):
        if next_start > prev_end:
            regions.append(VoicedRegion(prev_end, next_start))
    return [r for r in regions if min_duration <= r.duration <= max_duration]


def _overlapping_words(region: VoicedRegion, words: Sequence[TranscriptWord]) -> List[TranscriptWord]:
    lo, hi = region.start - OVERLAP_TOLERANCE, region.end + OVERLAP_TOLERANCE
    return [
        w for w in words
        if lo <= w.start <= hi or lo <= w.end <= hi or (w.start <= region.start and w.end >= region.end)
    ]


def correlate_regions(
    regions: Sequence[VoicedRegion],
    words: Sequence[TranscriptWord],
    table: Optional[FillerWordTierTable] = None,
) -> List[SpeechMistake]:
    """
    Turn voiced regions into mistakes. A region over a filler word confirms it
    (confidence by tier); a region with no transcript word at all becomes a
    low-confidence untranscribed filler. Regions over ordinary words are ignored.
    """
    table = table or get_filler_table()
    mistakes = []
    for region in regions:
        overlapping = _overlapping_words(region, words)
        if overlapping:
            tiered = [(table.tier(w.text), w) for w in overlapping]
            tiered = [(t, w) for t, w in tiered if t > 0]
            if not tiered:
                continue
            tier, word = min(tiered, key=lambda tw: tw[0])
            mistakes.append(SpeechMistake(
                kind=MistakeKind.FILLER_WORD,
                start=word.start,
                end=word.end,
                text=word.text,
                reason=f"Audio-confirmed filler word (tier {tier})",
                confidence=TIER_CONFIDENCE[tier],
                sources=frozenset({SOURCE}),
            ))
        elif UNTRANSCRIBED_MIN <= region.duration <= UNTRANSCRIBED_MAX:
            mistakes.append(SpeechMistake(
                kind=MistakeKind.FILLER_WORD,
                start=region.start,
                end=region.end,
                text="[filler sound]",
                reason="Filler sound not in transcript",
                confidence=UNTRANSCRIBED_CONFIDENCE,
                sources=frozenset({SOURCE}),
            ))
    return mistakes


def detect_acoustic_mistakes(
    audio_path: str,
    words: Sequence[TranscriptWord],
    table: Optional[FillerWordTierTable] = None,
    analyzer: Optional[AudioAnalyzer] = None,
) -> List[SpeechMistake]:
    analyzer = analyzer or AudioAnalyzer(audio_path)
    silences = analyzer.silent_intervals(HESITATION_SILENCE_DB, HESITATION_MIN_SILENCE)
    regions = find_short_voiced_regions(silences)
    mistakes = correlate_regions(regions, words, table)
    logger.info(
        f"Acoustic detection: {len(silences)} silences, {len(regions)} short voiced regions, "
        f"{len(mistakes)} candidates"
    )
    return mistakes
