# Editing endpoints (silence cut, speech cut, render)
import logging
from fastapi import APIRouter, HTTPException, Request

from schemas import SilenceCutRequest, SpeechCutRequest, RenderRequest
from cutengine.errors import (
    AnalysisError,
    CutEngineError,
    EmptyResultError,
    ProcessTimeoutError,
    ResourceExhaustionError,
    ServiceError,
)
from cutengine.encoder import render_keep_segments
from cutengine.pipeline import compute_mistake_keep_segments, silence_cut_plan

logger = logging.getLogger(__name__)

router = APIRouter(tags=["editing"])


def to_http_error(error: CutEngineError) -> HTTPException:
    """Map engine errors to status codes; the detail is always the user-facing message."""
    if isinstance(error, (AnalysisError, EmptyResultError)):
        status = 422
    elif isinstance(error, ResourceExhaustionError):
        status = 503
    elif isinstance(error, ProcessTimeoutError):
        status = 504
    elif isinstance(error, ServiceError):
        status = 502
    else:
        status = 500
    return HTTPException(status_code=status, detail=error.user_message)


@router.post("/silence-cut")
def silence_cut(request: SilenceCutRequest):
    """
    Adaptive silence removal:
    1. Chunked loudness sampling + noise classification
    2. Threshold estimate (unless overridden)
    3. Dual-pass silence detection
    4. Keep-segment synthesis
    """
    try:
        analysis, keep = silence_cut_plan(request.mediaPath, request.to_options())
    except CutEngineError as e:
        logger.error(f"Silence cut failed for {request.mediaPath}: {e}")
        raise to_http_error(e)

    return {
        "segments": [s.to_dict() for s in keep],
        "silences": [{"start": round(s.start, 3), "end": round(s.end, 3)} for s in analysis.silences],
        "threshold": round(analysis.threshold_db, 2),
        "wasAdjusted": analysis.was_adjusted,
        "noiseLevel": analysis.estimate.noise_level.value if analysis.estimate else None,
        "duration": analysis.duration,
        "analysisInfo": analysis.analysis_info,
    }


@router.post("/speech-cut")
def speech_cut(request: SpeechCutRequest):
    """Detect filler words, repetitions, stutters and false starts, and return what to keep."""
    config = request.to_config()
    try:
        mistakes, keep = compute_mistake_keep_segments(
            request.words,
            audio_track=request.mediaPath,
            config=config,
            duration=request.duration,
        )
    except CutEngineError as e:
        logger.error(f"Speech cut failed: {e}")
        raise to_http_error(e)

    threshold = config.effective_threshold
    return {
        "mistakes": [m.to_dict() for m in mistakes],
        "segments": [s.to_dict() for s in keep],
        "confidenceThreshold": threshold,
        "cutCount": sum(1 for m in mistakes if m.confidence >= threshold),
    }


@router.post("/render")
def render(request: RenderRequest, http_request: Request):
    """Cut the media file down to the keep segments through the supervised encoder."""
    supervisor = http_request.app.state.supervisor
    try:
        outcome = render_keep_segments(
            request.mediaPath,
            request.outputPath,
            request.keep_segments(),
            duration=request.duration,
            supervisor=supervisor,
            config=request.to_process_config(),
            include_video=not request.audioOnly,
        )
    except CutEngineError as e:
        logger.error(f"Render failed for {request.mediaPath}: {e}")
        raise to_http_error(e)

    return {
        "outputPath": request.outputPath,
        "attempts": outcome.attempts,
        "copied": outcome.attempts == 0,
    }
