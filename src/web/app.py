"""
FastAPI application factory for the focus guard API.

Routes:
- /api/* -> read-only metrics, events and session stats, plus frame submit
"""

from __future__ import annotations

from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipeline.engine import DetectionOrchestrator
from .routes import api
from .state import state


def create_app(
    orchestrator: Optional[DetectionOrchestrator] = None,
    allow_origins: Sequence[str] = ("http://localhost:5173", "http://127.0.0.1:5173"),
) -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Focus Guard",
        version="0.1.0",
        description="Proctoring detection pipeline API",
    )

    # CORS for a locally served dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    if orchestrator is not None:
        state.set_orchestrator(orchestrator)

    return app
