from fastapi import APIRouter

from app.api.routes import compliance, injury, load, recovery, return_to_play

api_router = APIRouter()
api_router.include_router(injury.router)
api_router.include_router(compliance.router)
api_router.include_router(load.router)
api_router.include_router(recovery.router)
api_router.include_router(return_to_play.router)
