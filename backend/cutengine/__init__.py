# cutengine - segment-decision engine for trimming dead time from spoken-word video
from .errors import (
    AnalysisError,
    CutEngineError,
    EmptyResultError,
    EncoderError,
    ProcessTimeoutError,
    ResourceExhaustionError,
    ServiceError,
)
from .models import KeepSegment, MistakeKind, SilenceInterval, SpeechMistake, TranscriptWord
from .pipeline import MistakeConfig, compute_mistake_keep_segments, compute_silence_keep_segments
from .segments import SegmentOptions, synthesize_keep_segments
from .silence import SilenceOptions
from .supervisor import CommandSpec, ProcessConfig, ProcessOutcome, ProcessRegistry, ProcessSupervisor, run_supervised
from .encoder import render_keep_segments

__all__ = [
    'AnalysisError',
    'CutEngineError',
    'EmptyResultError',
    'EncoderError',
    'ProcessTimeoutError',
    'ResourceExhaustionError',
    'ServiceError',
    'KeepSegment',
    'MistakeKind',
    'SilenceInterval',
    'SpeechMistake',
    'TranscriptWord',
    'MistakeConfig',
    'compute_mistake_keep_segments',
    'compute_silence_keep_segments',
    'SegmentOptions',
    'synthesize_keep_segments',
    'SilenceOptions',
    'CommandSpec',
    'ProcessConfig',
    'ProcessOutcome',
    'ProcessRegistry',
    'ProcessSupervisor',
    'run_supervised',
    'render_keep_segments',
]
