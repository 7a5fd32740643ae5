"""FastAPI backend for the jobsite token and Good Catch app."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src import config
from src.database import init_db
from src.logging_setup import setup_logging
from src.feedback.routes import router as feedback_router
from src.summary.routes import router as summary_router
from src.voting.routes import router as voting_router
from src.workers.routes import router as workers_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging()
    await init_db()
    logger.info("Server starting on port %s (timezone %s)", config.PORT, config.VOTE_TZ)
    yield
    # Shutdown (if needed)
    logger.info("Server shutting down")


# Initialize FastAPI app with lifespan
app = FastAPI(title="Jobsite Tokens API", lifespan=lifespan)

# Include feature routers
app.include_router(workers_router, prefix="/api", tags=["workers"])
app.include_router(voting_router, prefix="/api", tags=["voting"])
app.include_router(summary_router, prefix="/api", tags=["admin"])
app.include_router(feedback_router, prefix="/api", tags=["feedback"])


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same envelope as business rejections."""
    return JSONResponse(
        content={"ok": False, "code": "INVALID_BODY", "error": "Invalid body"},
        status_code=400
    )


@app.get("/api/health")
async def health() -> JSONResponse:
    return JSONResponse(content={"ok": True})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=True
    )
