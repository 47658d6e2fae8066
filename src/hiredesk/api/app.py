from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hiredesk.api.routes import auth_router, router, team_router
from hiredesk.config import Settings, get_settings
from hiredesk.core.notifications import Mailer
from hiredesk.core.onboarding import AuthWorkflows
from hiredesk.core.resources import TenantResources
from hiredesk.db.session import Database
from hiredesk.errors import HiredeskError
from hiredesk.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "conflict": 409,
    "not_found": 404,
    "forbidden": 403,
    "unauthorized": 401,
    "invalid": 400,
    "expired": 410,
    "already_used": 409,
    "transient": 503,
}


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    database = database or Database(settings)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.database = database
    app.state.workflows = AuthWorkflows(database, settings=settings, mailer=mailer)
    app.state.resources = TenantResources(database)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HiredeskError)
    def _handle_domain_error(request: Request, exc: HiredeskError) -> JSONResponse:
        status_code = ERROR_STATUS_CODES.get(exc.code, 500)
        if status_code >= 500:
            logger.error("Request failed path=%s code=%s", request.url.path, exc.code)
        return JSONResponse({"error": exc.message, "code": exc.code}, status_code=status_code)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(auth_router)
    app.include_router(team_router)
    app.include_router(router)
    return app
