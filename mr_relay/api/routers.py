from fastapi import APIRouter

from .endpoints import chat
from .endpoints import health
from .endpoints import session
from .endpoints import speech

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, prefix="", tags=["health"])
api_router.include_router(chat.router, prefix="", tags=["chat"])
api_router.include_router(session.router, prefix="", tags=["session"])
api_router.include_router(speech.router, prefix="", tags=["speech"])
