"""FastAPI application for the Personalized Storybook Generator."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storybook.config import PipelineSettings, is_demo_mode
from storybook.core.programs.story_pipeline import build_pipeline
from .logging import configure_from_env
from .models.responses import HealthResponse
from .routes import stories

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_from_env()

    # Startup: build one pipeline shared by every request
    settings = PipelineSettings.from_env()
    demo = is_demo_mode()
    app.state.pipeline = build_pipeline(settings=settings, demo=demo)
    app.state.demo_mode = demo

    if demo:
        logger.warning("No provider API key configured (or demo forced) - using demo generators")
    logger.info(
        f"Story pipeline ready: profile={settings.profile_name}, "
        f"pages={settings.target_page_count}, image_concurrency={settings.image_concurrency}"
    )

    yield


app = FastAPI(
    title="Personalized Storybook API",
    description="""
Generate a personalized illustrated storybook from a child's quiz answers.

## Pipeline
1. Write the story text
2. Meet the characters (supporting cast)
3. Design the main character
4. Design the supporting cast
5. Illustrate every page

## Endpoints
- POST `/stories/generate/stream` for live progress (server-sent events)
- POST `/stories/generate` for a single response when streaming is unavailable
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(stories.router, prefix="/stories", tags=["Stories"])


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    pipeline = getattr(app.state, "pipeline", None)
    return HealthResponse(
        status="healthy",
        demo_mode=getattr(app.state, "demo_mode", False),
        profile=pipeline.settings.profile_name if pipeline else "unknown",
    )
