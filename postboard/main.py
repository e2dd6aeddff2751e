import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import Settings, get_settings
from .database import Base, make_engine, make_session_factory
from .errors import APIError, InternalError
from .routes import auth as auth_routes
from .routes import posts as posts_routes

logger = logging.getLogger(__name__)


def _message(message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code, headers=headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around its own engine and session factory."""
    settings = settings or get_settings()
    engine = make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        logger.info("Tables ready")
        yield
        engine.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    # Must stay inside CORSMiddleware so 500 responses carry CORS headers.
    @app.middleware("http")
    async def internal_error_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled application error", exc_info=exc)
            return _message(InternalError.message, InternalError.status_code)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return _message(exc.message, exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
        return _message("Invalid request", 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _message(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.get("/")
    def read_root():
        return {"message": "Postboard API is up"}

    app.include_router(auth_routes.router)
    app.include_router(posts_routes.router)
    return app


app = create_app()
