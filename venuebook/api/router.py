from __future__ import annotations

from fastapi import APIRouter

from venuebook.api.routes import public

api_router = APIRouter()

api_router.include_router(public.router, prefix="/public", tags=["public"])
