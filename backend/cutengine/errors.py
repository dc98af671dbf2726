"""
Error taxonomy for the cut engine.

Every error carries a ``user_message`` that tells the end user what to do
next. Raw exit codes and signals stay in the log and in ``outcome``.
"""
from typing import Optional


class CutEngineError(Exception):
    """Base class for all engine failures."""
    user_message = "Video processing failed. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None, outcome=None):
        super().__init__(message)
        if user_message:
            self.user_message = user_message
        self.outcome = outcome


class AnalysisError(CutEngineError):
    """Input media could not be decoded or analysed. Never retried."""
    user_message = "The video could not be read. It may be corrupted or in an unsupported format."


class ProcessTimeoutError(CutEngineError, TimeoutError):
    """An external process exceeded its time budget or was terminated."""
    user_message = "Processing took too long. The server may be under load, please try again shortly."


class ResourceExhaustionError(CutEngineError):
    """An external process was killed by the operating system (likely out of memory)."""
    user_message = "The server ran out of memory. Try processing a shorter video or reducing processing options."


class EncoderError(CutEngineError):
    """Non-retryable encoder failure (bad input, missing binary, plain non-zero exit)."""
    user_message = "The video could not be encoded. The file may be corrupted or in an unsupported format."


class ServiceError(CutEngineError):
    """Cleanup or transcription service failure."""
    user_message = "The transcript cleanup service is unavailable."


class EmptyResultError(CutEngineError):
    """Cutting would leave nothing to keep."""
    user_message = "Nothing would be left after cutting. Try a less aggressive setting."
