# Pydantic request/response schemas
from typing import List, Optional
from pydantic import BaseModel, Field

from cutengine.models import KeepSegment
from cutengine.pipeline import MistakeConfig
from cutengine.segments import MISTAKE_SEGMENT_DEFAULTS, SILENCE_SEGMENT_DEFAULTS, SegmentOptions
from cutengine.silence import SilenceOptions
from cutengine.supervisor import ProcessConfig


class SegmentSettings(BaseModel):
    """Keep-segment shaping. Unset fields use the path's defaults."""
    edgePadding: Optional[float] = Field(None, ge=0)
    minSegment: Optional[float] = Field(None, ge=0)
    mergeGap: Optional[float] = Field(None, ge=0)
    paddingBefore: Optional[float] = Field(None, ge=0)
    paddingAfter: Optional[float] = Field(None, ge=0)

    def to_options(self, defaults: SegmentOptions) -> SegmentOptions:
        return SegmentOptions(
            edge_padding=defaults.edge_padding if self.edgePadding is None else self.edgePadding,
            min_segment=defaults.min_segment if self.minSegment is None else self.minSegment,
            merge_gap=defaults.merge_gap if self.mergeGap is None else self.mergeGap,
            padding_before=defaults.padding_before if self.paddingBefore is None else self.paddingBefore,
            padding_after=defaults.padding_after if self.paddingAfter is None else self.paddingAfter,
        )


class SilenceCutRequest(BaseModel):
    """Request for adaptive silence removal."""
    mediaPath: str
    threshold: Optional[float] = Field(None, le=0)
    minSilenceDuration: float = Field(0.3, gt=0)
    autoThreshold: bool = True
    speechBandFilter: bool = True
    segments: SegmentSettings = SegmentSettings()

    def to_options(self) -> SilenceOptions:
        return SilenceOptions(
            threshold_db=self.threshold,
            min_silence_duration=self.minSilenceDuration,
            auto_threshold=self.autoThreshold,
            speech_band_filter=self.speechBandFilter,
            segment_options=self.segments.to_options(SILENCE_SEGMENT_DEFAULTS),
        )


class SpeechCutRequest(BaseModel):
    """Request for filler / repetition removal over a word-level transcript."""
    words: List[dict]
    mediaPath: Optional[str] = None
    duration: Optional[float] = Field(None, gt=0)
    aggressiveness: str = Field("moderate", pattern="^(conservative|moderate|aggressive)$")
    confidenceThreshold: Optional[float] = Field(None, ge=0, le=1)
    removeFillerWords: bool = True
    removeRepeatedWords: bool = True
    removeRepeatedPhrases: bool = True
    removeFalseStarts: bool = True
    removeSelfCorrections: bool = True
    language: str = "auto"
    customFillerWords: List[str] = []
    customFillerPhrases: List[str] = []
    useAcoustic: bool = True
    useCleanupService: bool = True
    segments: SegmentSettings = SegmentSettings()

    def to_config(self) -> MistakeConfig:
        return MistakeConfig(
            aggressiveness=self.aggressiveness,
            confidence_threshold=self.confidenceThreshold,
            remove_filler_words=self.removeFillerWords,
            remove_repeated_words=self.removeRepeatedWords,
            remove_repeated_phrases=self.removeRepeatedPhrases,
            remove_false_starts=self.removeFalseStarts,
            remove_self_corrections=self.removeSelfCorrections,
            language=self.language,
            custom_filler_words=tuple(self.customFillerWords),
            custom_filler_phrases=tuple(self.customFillerPhrases),
            use_acoustic=self.useAcoustic,
            use_cleanup_service=self.useCleanupService,
            segment_options=self.segments.to_options(MISTAKE_SEGMENT_DEFAULTS),
        )


class KeepSegmentIn(BaseModel):
    start: float = Field(..., ge=0)
    end: float = Field(..., gt=0)


class RenderRequest(BaseModel):
    """Request to cut a media file down to the given keep segments."""
    mediaPath: str
    outputPath: str
    segments: List[KeepSegmentIn]
    duration: Optional[float] = Field(None, gt=0)
    audioOnly: bool = False
    timeout: Optional[float] = Field(None, gt=0)
    maxAttempts: Optional[int] = Field(None, ge=1)

    def keep_segments(self) -> List[KeepSegment]:
        return [KeepSegment(s.start, s.end) for s in sorted(self.segments, key=lambda s: s.start) if s.end > s.start]

    def to_process_config(self) -> ProcessConfig:
        config = ProcessConfig()
        if self.timeout is not None:
            config.timeout = self.timeout
        if self.maxAttempts is not None:
            config.max_attempts = self.maxAttempts
        return config
