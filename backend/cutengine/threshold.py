"""
Adaptive silence threshold estimation.

Several independent estimates are combined with a weighted average, then
clamped to bounds that depend on how noisy the recording is. Every offset
and weight is a fixed constant so identical statistics always give the
same threshold.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import ChunkAnalysis, PercentileSample

logger = logging.getLogger(__name__)


class NoiseLevel(str, enum.Enum):
    NOISY = "noisy"
    MODERATE = "moderate"
    CLEAN = "clean"


# Dynamic range (peak - RMS, dB) below which a track counts as noisy / moderate
NOISY_DYNAMIC_RANGE = 10.0
MODERATE_DYNAMIC_RANGE = 15.0

THRESHOLD_LOWER_BOUND = -50.0
THRESHOLD_UPPER_BOUNDS: Dict[NoiseLevel, float] = {
    NoiseLevel.NOISY: -8.0,
    NoiseLevel.MODERATE: -12.0,
    NoiseLevel.CLEAN: -12.0,
}


@dataclass(frozen=True)
class EstimatorConstants:
    """Offsets (dB subtracted from the statistic) and weights for one noise class."""
    peak_offset: float
    peak_weight: float
    mean_offset: float
    mean_weight: float
    rms_offset: float
    rms_weight: float


# Noisy audio: the noise floor sits close to the speech peaks, so the
# threshold moves up towards (and above) the mean level.
ESTIMATOR_CONSTANTS: Dict[NoiseLevel, EstimatorConstants] = {
    NoiseLevel.NOISY: EstimatorConstants(6.0, 1.0, -3.0, 1.5, 1.0, 0.5),
    NoiseLevel.MODERATE: EstimatorConstants(9.0, 1.0, 2.0, 0.5, 4.0, 0.8),
    NoiseLevel.CLEAN: EstimatorConstants(10.0, 1.0, 2.0, 0.5, 4.0, 0.8),
}

CLEAN_AGGRESSIVE_OFFSET = 12.0
CLEAN_AGGRESSIVE_WEIGHT = 0.5
NOISY_PEAK_OFFSET = 6.0
NOISY_PEAK_WEIGHT = 0.8


@dataclass(frozen=True)
class ThresholdCandidate:
    method: str
    value: float
    weight: float


@dataclass(frozen=True)
class ThresholdEstimate:
    threshold_db: float
    noise_level: NoiseLevel
    candidates: Tuple[ThresholdCandidate, ...]


def classify_noise(dynamic_range_db: Optional[float]) -> NoiseLevel:
    """Missing percentile data is treated as clean audio."""
    if dynamic_range_db is None:
        return NoiseLevel.CLEAN
    if dynamic_range_db < NOISY_DYNAMIC_RANGE:
        return NoiseLevel.NOISY
    if dynamic_range_db < MODERATE_DYNAMIC_RANGE:
        return NoiseLevel.MODERATE
    return NoiseLevel.CLEAN


def threshold_bounds(noise_level: NoiseLevel) -> Tuple[float, float]:
    return THRESHOLD_LOWER_BOUND, THRESHOLD_UPPER_BOUNDS[noise_level]


def build_candidates(
    median_max: float,
    median_mean: float,
    noise_level: NoiseLevel,
    percentiles: Optional[PercentileSample] = None,
) -> List[ThresholdCandidate]:
    c = ESTIMATOR_CONSTANTS[noise_level]
    candidates = [
        ThresholdCandidate("max", median_max - c.peak_offset, c.peak_weight),
        ThresholdCandidate("mean", median_mean - c.mean_offset, c.mean_weight),
    ]
    if percentiles is not None:
        candidates.append(ThresholdCandidate("rms", percentiles.rms_level_db - c.rms_offset, c.rms_weight))

    if noise_level == NoiseLevel.CLEAN:
        candidates.append(
            ThresholdCandidate("max_aggressive", median_max - CLEAN_AGGRESSIVE_OFFSET, CLEAN_AGGRESSIVE_WEIGHT)
        )
    elif noise_level == NoiseLevel.NOISY and percentiles is not None:
        candidates.append(
            ThresholdCandidate("peak", percentiles.peak_level_db - NOISY_PEAK_OFFSET, NOISY_PEAK_WEIGHT)
        )
    return candidates


def estimate_threshold(chunks: ChunkAnalysis, percentiles: Optional[PercentileSample] = None) -> ThresholdEstimate:
    """Combine chunk medians and the percentile sample into one silence threshold (dB)."""
    dynamic_range = percentiles.dynamic_range_db if percentiles is not None else None
    noise_level = classify_noise(dynamic_range)
    candidates = build_candidates(chunks.median_max, chunks.median_mean, noise_level, percentiles)

    total_weight = sum(c.weight for c in candidates)
    raw = sum(c.value * c.weight for c in candidates) / total_weight

    lower, upper = threshold_bounds(noise_level)
    threshold = min(upper, max(lower, raw))

    dr_text = f", DR={dynamic_range:.1f}dB" if dynamic_range is not None else ""
    logger.info(
        f"Adaptive threshold input: median max={chunks.median_max:.1f}dB, "
        f"median mean={chunks.median_mean:.1f}dB{dr_text} [{noise_level.value}]"
    )
    logger.info("Adaptive threshold methods: " + ", ".join(
        f"{c.method}={c.value:.1f}dB(w={c.weight})" for c in candidates
    ))
    logger.info(
        f"Adaptive threshold result: {threshold:.1f}dB "
        f"({chunks.median_max - threshold:.1f}dB below peak)"
    )
    return ThresholdEstimate(threshold_db=threshold, noise_level=noise_level, candidates=tuple(candidates))
