from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from loguru import logger

from src.api.deps import bearer_scheme, get_media, require_user
from src.api.router import api_router
from src.config import get_settings
from src.db.database import init_db
from src.media.cloudinary import CloudinaryClient
from src.scheduler.runner import start_scheduler

APP_VERSION = "1.0.0"

settings = get_settings()
scheduler: Optional[object] = None


def _warn_on_unsafe_config() -> None:
    if settings.is_production and settings.uses_dev_secrets:
        logger.warning("Token secrets are still the development defaults")
    if not CloudinaryClient.is_configured():
        logger.warning("Cloudinary credentials missing, image uploads will fail")


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting up...")
    _warn_on_unsafe_config()
    await init_db()

    scheduler = start_scheduler()

    yield

    if scheduler:
        scheduler.shutdown()
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="Tanah Merapi API",
    description="Content API for slides, menu, packages, promotions and site settings",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Origin", "Accept", "X-Requested-With"],
)

app.include_router(api_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    body: Dict[str, Any] = {"message": "Something went wrong on the server"}
    if not settings.is_production:
        body["error"] = str(exc)
    return JSONResponse(status_code=500, content=body)


@app.get("/")
async def root():
    return {
        "message": "Tanah Merapi API is running",
        "env": settings.environment,
        "version": APP_VERSION,
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/admin/status")
async def admin_status(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    # Require an access token in production
    if settings.is_production:
        await require_user(credentials)

    jobs = []
    if scheduler:
        for job in scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": str(job.next_run_time) if job.next_run_time else None,
                }
            )

    return {
        "scheduler_running": scheduler is not None and scheduler.running,
        "jobs": jobs,
    }


@app.get("/api/debug/media")
async def media_status(media: CloudinaryClient = Depends(get_media)):
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")

    configured = CloudinaryClient.is_configured()
    return {
        "configured": configured,
        "connected": await media.ping() if configured else False,
        "cloudName": media.cloud_name,
        "folder": media.folder,
    }


@app.get("/api/debug/headers")
async def request_headers(request: Request):
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")

    return {
        "headers": dict(request.headers),
        "origin": request.headers.get("origin"),
        "host": request.headers.get("host"),
        "method": request.method,
    }
