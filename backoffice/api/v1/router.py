from fastapi import APIRouter

from backoffice.api.routers import auth

api_router = APIRouter()

api_router.include_router(auth.router)
