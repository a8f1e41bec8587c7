"""Better Subtitles - local transcription service and subtitle lookup."""

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.database import bootstrap_schema, get_db
from app.routers import subtitles_router, transcripts_router
from app.services.transcript import get_transcript_service

settings = get_settings()

# Logging
logger = logging.getLogger("better_subtitles")
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    for warning in settings.validate():
        logger.warning(warning)
    if settings.AUTO_MIGRATE:
        await run_in_threadpool(bootstrap_schema)
    yield


app = FastAPI(title="Better Subtitles", version="0.1.0", lifespan=lifespan)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PREFIXES = ("/api/v1/transcripts", "/subtitles")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if path.startswith(self.AUDIT_PREFIXES) and (method in ("POST", "DELETE") or path == "/subtitles"):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(AuditLogMiddleware)
# Callers are browser extensions and arbitrary pages
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(subtitles_router)
app.include_router(transcripts_router)


# --- Health check ---
@app.get("/api/health")
def health_check(db: Session = Depends(get_db)) -> dict:
    """Health check endpoint."""
    try:
        transcripts, segments = get_transcript_service().count_rows(db)
    except SQLAlchemyError:
        return {"status": "degraded", "app": "better-subtitles", "version": "0.1.0"}
    return {
        "status": "ok",
        "app": "better-subtitles",
        "version": "0.1.0",
        "transcripts": transcripts,
        "segments": segments,
    }


def run() -> None:
    """Serve the API on the configured loopback address."""
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.SERVER_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
