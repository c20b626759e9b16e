"""
Realtime session endpoint.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mr_relay.api.dependencies.relay import get_session_controller
from mr_relay.api.models import ErrorResponse
from mr_relay.controllers.session_controller import SessionController

router = APIRouter()


@router.get(
    "/session",
    responses={500: {"model": ErrorResponse, "description": "Upstream failure"}},
)
async def create_session(
    controller: SessionController = Depends(get_session_controller),
) -> JSONResponse:
    """Return the upstream session payload unmodified.

    The ephemeral key lives under ``client_secret.value`` and expires
    within about a minute.
    """
    return JSONResponse(content=await controller.create_session())
