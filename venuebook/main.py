from __future__ import annotations

import logging

from fastapi import FastAPI

from venuebook.api.router import api_router
from venuebook.core.config import get_settings

settings = get_settings()

logging.basicConfig(level=settings.log_level)

app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
def health():
    return {"ok": True, "environment": settings.environment}
