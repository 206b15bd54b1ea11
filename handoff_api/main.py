"""FastAPI Application Entry Point.

Configures the app, CORS, and includes all route modules.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from handoff import __version__
from handoff.config import CORS_ORIGINS
from handoff.logging_config import get_api_logger

get_api_logger()
logger = logging.getLogger("handoff_api.app")

app = FastAPI(title="Design Handoff API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info(f"CORS origins: {CORS_ORIGINS}")

# Include routers
from handoff_api.routes.handoff import router as handoff_router  # noqa: E402

app.include_router(handoff_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}
