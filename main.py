import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.v1.events import router as events_router
from app.api.v1.client import public_router
from app.config.settings import settings
from app.core.exceptions import PhotoShareError
from app.core.rate_limit import limiter
from app.db.base import Base
from app.db.session import engine
from app.utils.event_utils import error_response

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "events",
        "description": "Host operations: events, gallery, export and deletion.",
    },
    {
        "name": "public",
        "description": "Guest access, QR code and photo capture.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    scheduler = None
    if settings.ORPHAN_CLEANUP_SCHEDULE:
        from app.tasks.scheduler import start_scheduler
        scheduler = start_scheduler()
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(
    title="Event Photo Share API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(PhotoShareError)
async def photo_share_error_handler(request: Request, exc: PhotoShareError):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc.message}")
    response = error_response(exc)
    return JSONResponse(status_code=exc.status_code, content=response.model_dump())


@app.get("/health")
def health_check():
    return {"status": "ok"}


# CORS policy
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(events_router, prefix="/api/v1", tags=["events"])
app.include_router(public_router, prefix="/api/v1", tags=["public"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
