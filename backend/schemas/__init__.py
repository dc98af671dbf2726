# schemas package
from .requests import (
    SegmentSettings,
    SilenceCutRequest,
    SpeechCutRequest,
    KeepSegmentIn,
    RenderRequest
)

__all__ = [
    'SegmentSettings',
    'SilenceCutRequest',
    'SpeechCutRequest',
    'KeepSegmentIn',
    'RenderRequest'
]
