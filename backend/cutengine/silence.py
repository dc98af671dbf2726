"""
Silence interval detection and dual-pass verification.

ffmpeg's silencedetect filter reports boundary events on stderr; they are
parsed line by line while the track is decoded.
"""
import logging
import re
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .config import settings
from .errors import AnalysisError
from .loudness import DEFAULT_CHUNK_DURATION, PERCENTILE_SAMPLE_DURATION, analyze_full_track, analyze_percentiles
from .media import SPEECH_BAND_FILTER, ffmpeg_analysis_command, probe_duration
from .models import SilenceInterval
from .segments import SILENCE_SEGMENT_DEFAULTS, SegmentOptions
from .threshold import ThresholdEstimate, estimate_threshold

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_DB = -25.0
DEFAULT_MIN_SILENCE_DURATION = 0.3
SENSITIVE_PASS_OFFSET_DB = 3.0
# Adopt the sensitive pass only if the primary found less than this share of silence...
SENSITIVE_MAX_PRIMARY_PERCENT = 40.0
# ...and the sensitive pass found at least this much more
SENSITIVE_MIN_GAIN = 1.15
HIGH_SILENCE_WARNING_PERCENT = 85.0

_SILENCE_START_RE = re.compile(r"silence_start:\s*(-?[\d.]+)")
_SILENCE_END_RE = re.compile(r"silence_end:\s*(-?[\d.]+)")


class SilenceEventParser:
    """Incremental parser for silencedetect stderr lines."""

    def __init__(self):
        self.intervals: List[SilenceInterval] = []
        self._open_start: Optional[float] = None

    def feed(self, line: str) -> Optional[SilenceInterval]:
        """Consume one line; return the interval it closes, if any."""
        start_match = _SILENCE_START_RE.search(line)
        if start_match:
            self._open_start = max(0.0, float(start_match.group(1)))

        end_match = _SILENCE_END_RE.search(line)
        if end_match and self._open_start is not None:
            end = float(end_match.group(1))
            start, self._open_start = self._open_start, None
            if end > start:
                interval = SilenceInterval(start, end)
                self.intervals.append(interval)
                return interval
        return None

    def close(self, duration: Optional[float] = None) -> List[SilenceInterval]:
        """Finish parsing. A silence still open at end of stream runs to ``duration`` when known."""
        if self._open_start is not None and duration is not None and duration > self._open_start:
            self.intervals.append(SilenceInterval(self._open_start, duration))
        self._open_start = None
        return self.intervals


def detect_silence(
    path: str,
    threshold_db: float,
    min_duration: float = DEFAULT_MIN_SILENCE_DURATION,
    speech_band: bool = True,
    duration: Optional[float] = None,
) -> List[SilenceInterval]:
    """Run silencedetect over the whole track and return silences ordered by start."""
    band = f"{SPEECH_BAND_FILTER}," if speech_band else ""
    audio_filter = f"{band}silencedetect=noise={threshold_db:.2f}dB:d={min_duration}"
    cmd = ffmpeg_analysis_command(path, audio_filter)
    logger.debug(f"Silence detection: threshold={threshold_db:.1f}dB, min={min_duration}s, speech band={speech_band}")

    parser = SilenceEventParser()
    tail: List[str] = []
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as e:
        raise AnalysisError(f"ffmpeg binary not found: {cmd[0]}") from e

    # The read loop blocks until ffmpeg closes stderr, so the deadline has to kill it
    timed_out = threading.Event()

    def _kill_stalled():
        timed_out.set()
        proc.kill()

    timer = threading.Timer(settings.analysis_timeout, _kill_stalled)
    timer.daemon = True
    timer.start()
    try:
        for line in proc.stderr:
            parser.feed(line)
            tail = (tail + [line])[-10:]
        returncode = proc.wait()
    finally:
        timer.cancel()
        if proc.stderr:
            proc.stderr.close()

    if timed_out.is_set():
        raise AnalysisError(f"Silence detection timed out after {settings.analysis_timeout}s on {path}")
    if returncode != 0:
        raise AnalysisError(f"Silence detection failed (exit {returncode}): {''.join(tail)[-300:]}")

    silences = sorted(parser.close(duration), key=lambda s: s.start)
    logger.debug(f"Silence detection found {len(silences)} intervals")
    return silences


def silence_percent(silences: List[SilenceInterval], duration: float) -> float:
    if duration <= 0:
        return 0.0
    return sum(s.duration for s in silences) / duration * 100.0


@dataclass(frozen=True)
class DualPassResult:
    silences: List[SilenceInterval]
    threshold_db: float
    was_adjusted: bool


def choose_pass(
    primary: List[SilenceInterval],
    sensitive: List[SilenceInterval],
    duration: float,
    primary_threshold: float,
) -> DualPassResult:
    """Pick between the primary pass and the sensitive (primary - 3 dB) pass."""
    sensitive_threshold = primary_threshold - SENSITIVE_PASS_OFFSET_DB
    primary_pct = silence_percent(primary, duration)
    sensitive_pct = silence_percent(sensitive, duration)

    if primary_pct > HIGH_SILENCE_WARNING_PERCENT:
        logger.warning(f"Very high silence ({primary_pct:.1f}%), the audio may be very quiet")

    if primary_pct < SENSITIVE_MAX_PRIMARY_PERCENT and sensitive_pct > primary_pct * SENSITIVE_MIN_GAIN:
        return DualPassResult(sensitive, sensitive_threshold, True)
    if not primary and sensitive:
        return DualPassResult(sensitive, sensitive_threshold, True)
    return DualPassResult(primary, primary_threshold, False)


def dual_pass_detect(
    detect: Callable[[float], List[SilenceInterval]],
    primary_threshold: float,
    duration: float,
) -> DualPassResult:
    """
    Run ``detect`` at the primary and the sensitive threshold and keep the
    better result. ``detect`` maps a threshold (dB) to silences.
    """
    primary = detect(primary_threshold)
    logger.debug(f"Dual-pass primary: {len(primary)} silences, {silence_percent(primary, duration):.1f}%")
    sensitive = detect(primary_threshold - SENSITIVE_PASS_OFFSET_DB)
    logger.debug(f"Dual-pass sensitive: {len(sensitive)} silences, {silence_percent(sensitive, duration):.1f}%")

    result = choose_pass(primary, sensitive, duration, primary_threshold)
    logger.info(
        f"Dual-pass final: {len(result.silences)} silences "
        f"({silence_percent(result.silences, duration):.1f}%), threshold={result.threshold_db:.1f}dB"
        f"{' (adjusted)' if result.was_adjusted else ''}"
    )
    return result


@dataclass
class SilenceOptions:
    """Options for the silence-cut path."""
    threshold_db: Optional[float] = None  # overrides the adaptive estimate
    min_silence_duration: float = DEFAULT_MIN_SILENCE_DURATION
    auto_threshold: bool = True
    speech_band_filter: bool = True
    dual_pass: bool = True
    segment_options: SegmentOptions = field(default_factory=lambda: SILENCE_SEGMENT_DEFAULTS)


@dataclass
class SilenceAnalysis:
    silences: List[SilenceInterval]
    threshold_db: float
    was_adjusted: bool
    duration: float
    analysis_info: str
    estimate: Optional[ThresholdEstimate] = None


def analyze_silence(path: str, options: Optional[SilenceOptions] = None, duration: Optional[float] = None) -> SilenceAnalysis:
    """Probe, estimate a threshold (unless overridden) and detect silences."""
    options = options or SilenceOptions()
    duration = duration if duration is not None else probe_duration(path)

    def detect(threshold: float) -> List[SilenceInterval]:
        return detect_silence(
            path, threshold, options.min_silence_duration,
            speech_band=options.speech_band_filter, duration=duration,
        )

    if options.threshold_db is not None or not options.auto_threshold:
        threshold = options.threshold_db if options.threshold_db is not None else DEFAULT_THRESHOLD_DB
        silences = detect(threshold)
        info = (
            f"Fixed: threshold={threshold:.1f}dB, {len(silences)} silences "
            f"({silence_percent(silences, duration):.1f}%)"
        )
        logger.info(f"Silence analysis: {info}")
        return SilenceAnalysis(silences, threshold, False, duration, info)

    logger.info(f"Adaptive silence analysis for {duration:.1f}s track")
    chunks = analyze_full_track(path, duration, chunk_duration=min(DEFAULT_CHUNK_DURATION, duration))
    percentiles = analyze_percentiles(path, min(PERCENTILE_SAMPLE_DURATION, duration))
    estimate = estimate_threshold(chunks, percentiles)

    if options.dual_pass:
        result = dual_pass_detect(detect, estimate.threshold_db, duration)
    else:
        result = DualPassResult(detect(estimate.threshold_db), estimate.threshold_db, False)

    info = (
        f"Adaptive: median max={chunks.median_max:.1f}dB, threshold={result.threshold_db:.1f}dB"
        f"{' (adjusted)' if result.was_adjusted else ''}, {len(result.silences)} silences "
        f"({silence_percent(result.silences, duration):.1f}%)"
    )
    logger.info(f"Silence analysis: {info}")
    return SilenceAnalysis(result.silences, result.threshold_db, result.was_adjusted, duration, info, estimate)
