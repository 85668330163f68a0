"""
Main FastAPI application for the Photobooth generation API.
Serves health, generation endpoints (video, OpenAI edit, booth image) and metrics.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
from app.api.routes import health, generation
from app.utils.metrics import router as metrics_router


configure_logging()

app = FastAPI(
    title="Photobooth Generation API",
    description="Gemini / OpenAI image edit and Vertex Veo video for the photobooth",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(generation.router)
app.include_router(metrics_router)
