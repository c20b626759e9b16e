"""
Speech endpoints.

- POST /tts: text to MP3 audio
- POST /stt: multipart audio upload to transcription JSON
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from mr_relay.api.dependencies.relay import get_speech_controller, read_json_body
from mr_relay.api.models import ErrorResponse, TranscriptionResponse
from mr_relay.controllers.speech_controller import SpeechController
from mr_relay.services.upstream.client import SPEECH_MEDIA_TYPE
from mr_relay.utils.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/tts",
    response_class=Response,
    responses={
        200: {"content": {SPEECH_MEDIA_TYPE: {}}, "description": "MP3 audio"},
        400: {"model": ErrorResponse, "description": "text missing"},
        502: {"model": ErrorResponse, "description": "Upstream unreachable"},
    },
)
async def text_to_speech(
    payload: Any = Depends(read_json_body),
    controller: SpeechController = Depends(get_speech_controller),
) -> Response:
    """
    Body: ``{"text", "voice"?}``.

    Unlike the JSON endpoints, an upstream failure is passed through with
    the provider's status code and raw body so audio problems stay
    diagnosable on the device.
    """
    try:
        audio = await controller.synthesize(payload)
    except UpstreamError as e:
        logger.warning(f"TTS upstream failure passed through: {e.upstream_status}")
        return Response(
            content=e.body,
            status_code=e.upstream_status,
            media_type=e.content_type,
        )
    except TransportError as e:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=e.to_dict())

    return Response(content=audio, media_type=SPEECH_MEDIA_TYPE)


@router.post(
    "/stt",
    response_model=TranscriptionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "audio file missing or too large"},
        500: {"model": ErrorResponse, "description": "Upstream failure"},
    },
)
async def speech_to_text(
    request: Request,
    controller: SpeechController = Depends(get_speech_controller),
) -> JSONResponse:
    """Multipart upload under ``audio``, ``file`` or ``audio_file``."""
    form = await request.form()
    try:
        data = await controller.transcribe(form)
    finally:
        await form.close()
    return JSONResponse(content=data)
