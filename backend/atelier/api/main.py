from fastapi import APIRouter

from atelier.api.routes import browse, login, public, studio, utils

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(utils.router)
api_router.include_router(public.router)
api_router.include_router(studio.router)
api_router.include_router(browse.router)
