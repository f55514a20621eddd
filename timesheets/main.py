from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from timesheets.core.logging import configure_logging
from timesheets.models import timecard_record  # noqa: F401
from timesheets.routers.timesheets import router as timesheets_router

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Timesheets service starting", extra={"version": APP_VERSION})
    yield


app = FastAPI(
    title="Timesheets",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            extra={"method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(timesheets_router)


@app.get("/")
def root():
    return {"status": "Timesheets running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": APP_VERSION,
    }
