"""FastAPI server for the agent mail sandbox."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.admin_routes import router as admin_router
from src.api.email_routes import router as email_router
from src.api.envelope import fail
from src.api.group_routes import router as group_router
from src.config import GROUP_CONFIG_PATH
from src.db import Database, init_db
from src.mail.errors import AmbiguousMessageError, InternalError, MailError
from src.mail.service import MailService
from src.setup.group_config import seed_groups_from_config
from src.utils.logger import get_logger, request_context

logger = get_logger("agent_mail.api.server")


def _attach(app: FastAPI, db: Database) -> None:
    app.state.db = db
    app.state.mail_service = MailService(db)


@asynccontextmanager
async def _lifespan(app: FastAPI, create_db: bool = True):
    """Open the database in the server process when the caller did not pass one."""
    if create_db:
        db = init_db()
        _attach(app, db)
        seed_groups_from_config(app.state.mail_service, GROUP_CONFIG_PATH)
        logger.info("api.lifespan.started", database=db.url)

    yield

    if create_db:
        app.state.db.dispose()
        logger.info("api.lifespan.stopped")


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AmbiguousMessageError)
    async def _ambiguous(request: Request, exc: AmbiguousMessageError) -> JSONResponse:
        logger.info("api.request.ambiguous", path=request.url.path, thread_ids=exc.thread_ids)
        return fail(exc.status_code, exc.message, exc.data)

    @app.exception_handler(InternalError)
    async def _internal(request: Request, exc: InternalError) -> JSONResponse:
        logger.error("api.request.internal_error", path=request.url.path, error=exc.message)
        return fail(500, "Internal server error")

    @app.exception_handler(MailError)
    async def _mail_error(request: Request, exc: MailError) -> JSONResponse:
        logger.info(
            "api.request.rejected",
            path=request.url.path,
            status=exc.status_code,
            error=exc.message,
        )
        return fail(exc.status_code, exc.message, exc.data)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
        logger.info("api.request.validation_error", path=request.url.path, fields=fields)
        message = "Invalid request body"
        if fields:
            message = f"Missing required fields: {', '.join(fields)}"
        return fail(400, message)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("api.request.unhandled_error", path=request.url.path, error=str(exc))
        return fail(500, "Internal server error")


def create_app(db: Optional[Database] = None) -> FastAPI:
    """
    Create FastAPI app. If db is passed (tests, CLI), use it; otherwise the lifespan opens
    the configured database and seeds groups from the group config file.
    """
    create_db_in_lifespan = db is None
    app = FastAPI(
        title="Agent Mail Sandbox",
        version="0.1.0",
        lifespan=lambda app: _lifespan(app, create_db=create_db_in_lifespan),
    )
    if db is not None:
        _attach(app, db)

    _install_error_handlers(app)

    @app.middleware("http")
    async def _request_context(request: Request, call_next):
        with request_context(method=request.method, path=request.url.path) as request_id:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.debug("api.request.completed", status=response.status_code)
            return response

    app.include_router(email_router)
    app.include_router(group_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": "API is live"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
