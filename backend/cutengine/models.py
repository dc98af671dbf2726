"""
Domain types shared by the analysis, detection and synthesis steps.

All of these are transient: created and consumed within one processing
request, never persisted.
"""
import enum
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional


@dataclass(frozen=True)
class VolumeSample:
    """ffmpeg volumedetect result for one analysis window."""
    max_volume_db: float
    mean_volume_db: float


@dataclass(frozen=True)
class PercentileSample:
    """ffmpeg astats result: overall peak and RMS level for a sampled window."""
    peak_level_db: float
    rms_level_db: float

    @property
    def dynamic_range_db(self) -> float:
        return self.peak_level_db - self.rms_level_db


@dataclass(frozen=True)
class ChunkAnalysis:
    """Per-chunk volume statistics for a whole track plus their medians."""
    max_volumes: List[float]
    mean_volumes: List[float]
    median_max: float
    median_mean: float


@dataclass(frozen=True)
class SilenceInterval:
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class KeepSegment:
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, float]:
        return {"start": round(self.start, 3), "end": round(self.end, 3)}


@dataclass(frozen=True)
class TranscriptWord:
    text: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class MistakeKind(str, enum.Enum):
    FILLER_WORD = "filler_word"
    REPEATED_WORD = "repeated_word"
    REPEATED_PHRASE = "repeated_phrase"
    STUTTER = "stutter"
    FALSE_START = "false_start"
    SELF_CORRECTION = "self_correction"


@dataclass(frozen=True)
class SpeechMistake:
    """
    A candidate span to cut. ``confidence`` is the only gate deciding whether
    it becomes a cut; ``sources`` names the detectors that reported it.
    """
    kind: MistakeKind
    start: float
    end: float
    text: str
    reason: str
    confidence: float
    sources: FrozenSet[str] = field(default_factory=frozenset)

    def overlaps(self, other: "SpeechMistake") -> bool:
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict:
        return {
            "type": self.kind.value,
            "start": round(self.start, 3),
            "end": round(self.end, 3),
            "text": self.text,
            "reason": self.reason,
            "confidence": round(self.confidence, 3),
            "sources": sorted(self.sources),
        }


def words_from_dicts(raw_words: List[Dict], duration: Optional[float] = None) -> List[TranscriptWord]:
    """
    Build TranscriptWords from loose dicts ({'word' or 'text', 'start', 'end'}).

    Timestamps in milliseconds are converted to seconds when the transcript
    clearly runs past the media duration. The unit is decided once for the
    whole transcript.
    """
    latest = max((float(w.get("end", w.get("start", 0.0))) for w in raw_words), default=0.0)
    scale = 1000.0 if duration is not None and latest > duration * 1.1 else 1.0

    words = []
    for w in raw_words:
        text = w.get("text", w.get("word", ""))
        start = float(w.get("start", 0.0)) / scale
        end = float(w.get("end", w.get("start", 0.0))) / scale
        if not str(text).strip() or end < start:
            continue
        words.append(TranscriptWord(text=str(text).strip(), start=start, end=end))
    words.sort(key=lambda w: w.start)
    return words
