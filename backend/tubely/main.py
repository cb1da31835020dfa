"""
FastAPI Entry Point for Tubely
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tubely.config.base import settings
from tubely.errors import IngestError
from tubely.utils.logger import get_logger, setup_logging

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)
logger = get_logger(__name__)
logger.info("🚀 Starting Tubely API initialization...")

from tubely.routers.videos import router as videos_router  # noqa: E402
from tubely.services.record_store import record_store  # noqa: E402
from tubely.services.s3_service import s3_service  # noqa: E402

app = FastAPI(
    title="Tubely API",
    description="Video upload, fast-start remux, S3 storage and signed playback URLs",
    version=settings.VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400
)

app.include_router(videos_router)


@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError):
    # Stage failures are already logged at ERROR where they occur
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code} ({exc.stage})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"An unhandled exception occurred: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "stage": "unknown", "detail": "An internal server error occurred."},
    )


@app.get("/")
async def root():
    return {"message": "Tubely API", "version": settings.VERSION}


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "services": {
            "s3": "available" if s3_service.enabled else "unavailable",
            "redis": "available" if record_store.is_available() else "unavailable",
        }
    }


logger.info("✅ Tubely API ready")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
