from fastapi import APIRouter

from callcontrol.api.v1.endpoints import calls, messages, recordings, voice

api_v1_router = APIRouter()

api_v1_router.include_router(voice.router, prefix="/voice", tags=["voice"])
api_v1_router.include_router(calls.router, prefix="/calls", tags=["calls"])
api_v1_router.include_router(recordings.router, prefix="/recordings", tags=["recordings"])
api_v1_router.include_router(messages.router, prefix="/messages", tags=["messages"])
