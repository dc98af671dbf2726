"""
Entry points for the two cut paths.

  compute_silence_keep_segments  - adaptive silence removal
  compute_mistake_keep_segments  - filler / repetition / false-start removal

Both return keep segments ready for ``encoder.render_keep_segments``.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .acoustic_detector import detect_acoustic_mistakes
from .cleanup_diff import CleanupService, detect_cleanup_mistakes
from .errors import AnalysisError
from .filler_words import get_filler_table
from .llm_editor import default_cleanup_service
from .media import probe_duration
from .merger import merge_mistakes
from .models import KeepSegment, SpeechMistake, TranscriptWord, words_from_dicts
from .rule_detector import detect_rule_mistakes
from .segments import (
    MISTAKE_SEGMENT_DEFAULTS,
    SegmentOptions,
    ensure_keep_segments,
    mistake_cut_intervals,
    synthesize_keep_segments,
)
from .silence import SilenceAnalysis, SilenceOptions, analyze_silence

logger = logging.getLogger(__name__)

AGGRESSIVENESS_THRESHOLDS: Dict[str, float] = {
    "conservative": 0.80,
    "moderate": 0.60,
    "aggressive": 0.40,
}


@dataclass
class MistakeConfig:
    aggressiveness: str = "moderate"
    confidence_threshold: Optional[float] = None  # overrides the aggressiveness preset
    remove_filler_words: bool = True
    remove_repeated_words: bool = True
    remove_repeated_phrases: bool = True
    remove_false_starts: bool = True
    remove_self_corrections: bool = True
    language: str = "auto"
    custom_filler_words: Sequence[str] = ()
    custom_filler_phrases: Sequence[str] = ()
    use_acoustic: bool = True
    use_cleanup_service: bool = True
    segment_options: SegmentOptions = MISTAKE_SEGMENT_DEFAULTS

    def __post_init__(self):
        if self.aggressiveness not in AGGRESSIVENESS_THRESHOLDS:
            raise ValueError(
                f"Unknown aggressiveness '{self.aggressiveness}', "
                f"expected one of {sorted(AGGRESSIVENESS_THRESHOLDS)}"
            )

    @property
    def effective_threshold(self) -> float:
        if self.confidence_threshold is not None:
            return self.confidence_threshold
        return AGGRESSIVENESS_THRESHOLDS[self.aggressiveness]

    def enabled_categories(self) -> List[str]:
        flags = [
            ("filler_words", self.remove_filler_words),
            ("repeated_words", self.remove_repeated_words),
            ("repeated_phrases", self.remove_repeated_phrases),
            ("false_starts", self.remove_false_starts),
            ("self_corrections", self.remove_self_corrections),
        ]
        return [name for name, enabled in flags if enabled]


def silence_cut_plan(audio_track: str, options: Optional[SilenceOptions] = None) -> Tuple[SilenceAnalysis, List[KeepSegment]]:
    """Silence analysis together with the keep segments synthesized from it."""
    options = options or SilenceOptions()
    analysis = analyze_silence(audio_track, options)
    keep = synthesize_keep_segments(analysis.silences, analysis.duration, options.segment_options)
    keep = ensure_keep_segments(keep)
    logger.info(
        f"Silence cut: {len(keep)} keep segments, "
        f"{analysis.duration - sum(s.duration for s in keep):.1f}s removed"
    )
    return analysis, keep


def compute_silence_keep_segments(audio_track: str, options: Optional[SilenceOptions] = None) -> List[KeepSegment]:
    return silence_cut_plan(audio_track, options)[1]


def _resolve_duration(
    words: Sequence[TranscriptWord],
    audio_track: Optional[str],
    duration: Optional[float],
) -> float:
    if duration is not None:
        return duration
    if audio_track:
        return probe_duration(audio_track)
    if words:
        return max(w.end for w in words)
    raise AnalysisError("Track duration is unknown: no audio track, transcript or duration given")


def _run_detectors(detectors: Dict[str, Callable[[], List[SpeechMistake]]]) -> Dict[str, List[SpeechMistake]]:
    """Run detectors concurrently. A failing detector contributes no candidates."""
    results: Dict[str, List[SpeechMistake]] = {}
    with ThreadPoolExecutor(max_workers=len(detectors)) as pool:
        futures = {name: pool.submit(fn) for name, fn in detectors.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                logger.warning(f"{name} detector failed, continuing without it: {e}")
                results[name] = []
    return results


def compute_mistake_keep_segments(
    transcript: Optional[Sequence[Union[TranscriptWord, Dict]]],
    audio_track: Optional[str] = None,
    config: Optional[MistakeConfig] = None,
    cleanup_service: Optional[CleanupService] = None,
    duration: Optional[float] = None,
) -> Tuple[List[SpeechMistake], List[KeepSegment]]:
    """
    Detect speech mistakes with every available detector, merge them and
    cut the ones at or above the confidence threshold.

    Returns all merged mistakes (including those below the threshold) and the
    keep segments. An absent or empty transcript keeps the whole track.
    """
    config = config or MistakeConfig()
    transcript = list(transcript or [])
    if transcript and isinstance(transcript[0], dict):
        # the unit check needs the media length
        if duration is None and audio_track:
            duration = probe_duration(audio_track)
        words = words_from_dicts(transcript, duration)
    else:
        words = sorted(transcript, key=lambda w: w.start)

    duration = _resolve_duration(words, audio_track, duration)
    if not words:
        logger.info("No transcript words, keeping the whole track")
        return [], [KeepSegment(0.0, duration)]

    table = get_filler_table(config.language, config.custom_filler_words, config.custom_filler_phrases)
    categories = config.enabled_categories()

    detectors: Dict[str, Callable[[], List[SpeechMistake]]] = {
        "rules": lambda: detect_rule_mistakes(
            words, table,
            remove_filler_words=config.remove_filler_words,
            remove_repeated_words=config.remove_repeated_words,
            remove_repeated_phrases=config.remove_repeated_phrases,
        ),
    }
    if config.use_acoustic and audio_track and config.remove_filler_words:
        detectors["acoustic"] = lambda: detect_acoustic_mistakes(audio_track, words, table)
    if config.use_cleanup_service and categories:
        service = cleanup_service or default_cleanup_service()
        if service is not None:
            detectors["cleanup"] = lambda: detect_cleanup_mistakes(
                words, service, categories, config.aggressiveness, table,
            )
        else:
            logger.info("No cleanup service configured, skipping cleanup-diff detection")

    results = _run_detectors(detectors)
    merged = merge_mistakes(
        results["rules"], results.get("acoustic", []), results.get("cleanup", []),
    )

    threshold = config.effective_threshold
    cuts = mistake_cut_intervals(merged, threshold)
    keep = ensure_keep_segments(synthesize_keep_segments(cuts, duration, config.segment_options))
    logger.info(
        f"Mistake cut: {len(merged)} mistakes, {len(cuts)} at or above {threshold:.2f}, "
        f"{len(keep)} keep segments"
    )
    return merged, keep
