"""
Loudness sampling with ffmpeg's volumedetect and astats filters.

The whole track is read in fixed chunks so one loud event (a clap, a music
stab) only affects one chunk; the estimator then works on chunk medians.
"""
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from .config import settings
from .errors import AnalysisError
from .media import SPEECH_BAND_FILTER, ffmpeg_analysis_command, run_ffmpeg_analysis
from .models import ChunkAnalysis, PercentileSample, VolumeSample

logger = logging.getLogger(__name__)

DEFAULT_MEDIAN_MAX = -25.0
DEFAULT_MEDIAN_MEAN = -30.0
DEFAULT_CHUNK_DURATION = 30.0
PERCENTILE_SAMPLE_DURATION = 60.0
MIN_CHUNK_DURATION = 1.0
# Assumed gap between max and mean when ffmpeg reports no mean
MEAN_FALLBACK_OFFSET = 15.0

_MAX_VOLUME_RE = re.compile(r"max_volume:\s*(-?[\d.]+|-inf)\s*dB", re.IGNORECASE)
_MEAN_VOLUME_RE = re.compile(r"mean_volume:\s*(-?[\d.]+|-inf)\s*dB", re.IGNORECASE)
_PEAK_LEVEL_RE = re.compile(r"Peak level dB:\s*(-?[\d.]+|-inf)", re.IGNORECASE)
_RMS_LEVEL_RE = re.compile(r"RMS level dB:\s*(-?[\d.]+|-inf)", re.IGNORECASE)


def _to_db(value: str) -> Optional[float]:
    if value.lower() == "-inf":
        return None
    return float(value)


def parse_volumedetect(output: str) -> Optional[VolumeSample]:
    """Parse volumedetect stats from ffmpeg stderr. Returns None without a usable max_volume."""
    max_match = _MAX_VOLUME_RE.search(output)
    if not max_match:
        return None
    max_volume = _to_db(max_match.group(1))
    if max_volume is None:
        return None

    mean_volume = None
    mean_match = _MEAN_VOLUME_RE.search(output)
    if mean_match:
        mean_volume = _to_db(mean_match.group(1))
    if mean_volume is None:
        mean_volume = max_volume - MEAN_FALLBACK_OFFSET

    return VolumeSample(max_volume_db=max_volume, mean_volume_db=mean_volume)


def parse_astats(output: str) -> Optional[PercentileSample]:
    """
    Parse astats peak/RMS levels. The "Overall" section is preferred; with a
    mono track only the per-channel block may be useful.
    """
    marker = output.find("Overall")
    section = output[marker:] if marker >= 0 else output

    peak_match = _PEAK_LEVEL_RE.search(section) or _PEAK_LEVEL_RE.search(output)
    rms_match = _RMS_LEVEL_RE.search(section) or _RMS_LEVEL_RE.search(output)
    if not peak_match or not rms_match:
        return None

    peak = _to_db(peak_match.group(1))
    rms = _to_db(rms_match.group(1))
    if peak is None or rms is None:
        return None
    return PercentileSample(peak_level_db=peak, rms_level_db=rms)


def analyze_chunk(path: str, start: float, duration: float) -> Optional[VolumeSample]:
    """volumedetect over one window. Failures are logged and reported as None."""
    cmd = ffmpeg_analysis_command(path, f"{SPEECH_BAND_FILTER},volumedetect", start=start, duration=duration)
    try:
        output = run_ffmpeg_analysis(cmd)
    except AnalysisError as e:
        logger.debug(f"Chunk {start:.1f}s+{duration:.1f}s skipped: {e}")
        return None
    return parse_volumedetect(output)


def analyze_full_track(
    path: str,
    duration: float,
    chunk_duration: float = DEFAULT_CHUNK_DURATION,
    max_concurrency: Optional[int] = None,
) -> ChunkAnalysis:
    """Sample the whole track chunk by chunk, with a bounded number of concurrent ffmpeg runs."""
    if not np.isfinite(duration) or duration <= 0:
        logger.warning(f"Invalid track duration {duration}, using default loudness statistics")
        return ChunkAnalysis([], [], DEFAULT_MEDIAN_MAX, DEFAULT_MEDIAN_MEAN)

    windows = []
    start = 0.0
    while start < duration:
        length = min(chunk_duration, duration - start)
        if length >= MIN_CHUNK_DURATION:
            windows.append((start, length))
        start += chunk_duration

    workers = max_concurrency or settings.analysis_concurrency
    logger.info(f"Analyzing {len(windows)} chunks of {chunk_duration}s ({workers} at a time)")

    with ThreadPoolExecutor(max_workers=workers) as pool:
        samples = list(pool.map(lambda w: analyze_chunk(path, w[0], w[1]), windows))

    max_volumes = [s.max_volume_db for s in samples if s is not None]
    mean_volumes = [s.mean_volume_db for s in samples if s is not None]

    median_max = float(np.median(max_volumes)) if max_volumes else DEFAULT_MEDIAN_MAX
    median_mean = float(np.median(mean_volumes)) if mean_volumes else DEFAULT_MEDIAN_MEAN

    logger.info(
        f"Loudness over {len(max_volumes)}/{len(windows)} chunks: "
        f"median max={median_max:.1f}dB, median mean={median_mean:.1f}dB"
    )
    return ChunkAnalysis(max_volumes, mean_volumes, median_max, median_mean)


def analyze_percentiles(path: str, sample_duration: Optional[float] = PERCENTILE_SAMPLE_DURATION) -> Optional[PercentileSample]:
    """Overall peak and RMS level of the first ``sample_duration`` seconds."""
    audio_filter = (
        f"{SPEECH_BAND_FILTER},"
        "astats=measure_perchannel=Peak_level+RMS_level:measure_overall=Peak_level+RMS_level"
    )
    cmd = ffmpeg_analysis_command(path, audio_filter, duration=sample_duration)
    try:
        output = run_ffmpeg_analysis(cmd)
    except AnalysisError as e:
        logger.debug(f"Percentile analysis failed: {e}")
        return None

    sample = parse_astats(output)
    if sample is None:
        logger.debug("Could not parse astats output")
    else:
        logger.info(
            f"Percentiles: peak={sample.peak_level_db:.1f}dB, rms={sample.rms_level_db:.1f}dB, "
            f"DR={sample.dynamic_range_db:.1f}dB"
        )
    return sample
