import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from resume_organizer.api.v1.health import router as health_router
from resume_organizer.api.v1.resumes import files_router, router as resumes_router
from resume_organizer.core.config import Settings, settings
from resume_organizer.core.cors import cors_allowed_origins
from resume_organizer.core.lifespan import lifespan
from resume_organizer.core.rate_limit import limiter
from resume_organizer.errors import ResumeOrganizerError

logger = logging.getLogger(__name__)


def _configure_observability(config: Settings) -> None:
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if config.sentry_dsn:
        sentry_sdk.init(dsn=config.sentry_dsn)


async def _resume_error_handler(request: Request, exc: ResumeOrganizerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed path=%s error=%s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    _configure_observability(config)
    application = FastAPI(title="Resume Organizer API", version="0.1.0", lifespan=lifespan)
    application.state.settings = config

    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allowed_origins(config),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    limiter.enabled = config.rate_limit_enabled
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(ResumeOrganizerError, _resume_error_handler)
    application.add_middleware(SlowAPIMiddleware)

    application.include_router(health_router, prefix="/api", tags=["Health"])
    application.include_router(resumes_router, prefix="/api", tags=["Resumes"])
    application.include_router(files_router, tags=["Files"])

    @application.get("/")
    async def root():
        return {"message": "Resume Organizer API is running!"}

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("resume_organizer.main:app", host="127.0.0.1", port=5000, reload=True)
