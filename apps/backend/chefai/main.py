# apps/backend/chefai/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .ai_gateway import RecipeGateway
from .auth import AccessService, auth_router
from .config import Settings, load_settings
from .database import init_db, make_engine, make_session_factory
from .errors import ChefAIError, InvalidInput
from .mailer_sendgrid import SendGridMailer
from .routers import recipes_router, subscription_router

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
MODIFY_BODY_INVALID = "Receita e modificação são obrigatórios"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return InvalidInput.default_message
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"Campo inválido: {field}" if field else InvalidInput.default_message


def create_app(
    settings: Optional[Settings] = None,
    *,
    access_service: Optional[AccessService] = None,
    gateway: Optional[RecipeGateway] = None,
) -> FastAPI:
    settings = settings or load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="ChefAI API",
        version=settings.app_version,
    )

    if access_service is None:
        engine = make_engine(settings.database_url)
        if settings.auto_create_tables:
            init_db(engine)
        access_service = AccessService(
            make_session_factory(engine),
            SendGridMailer(settings),
            settings,
        )

    app.state.settings = settings
    app.state.access_service = access_service
    app.state.gateway = gateway or RecipeGateway(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # 👇 統一用 /api prefix
    app.include_router(auth_router, prefix="/api")
    app.include_router(recipes_router, prefix="/api")
    app.include_router(subscription_router, prefix="/api")

    @app.exception_handler(ChefAIError)
    async def chefai_error_handler(request: Request, exc: ChefAIError):
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        if request.url.path == "/api/modify-recipe":
            # this route reports every failure, bad bodies included, as 500
            logger.error("Error modifying recipe: %s", _validation_message(exc))
            return JSONResponse({"error": MODIFY_BODY_INVALID}, status_code=500)
        return JSONResponse({"error": _validation_message(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": ChefAIError.default_message}, status_code=500)

    # =========================================================
    # Health / Version
    # =========================================================
    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "chefai-backend OK"

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.get("/version")
    def version():
        return {"version": settings.app_version}

    logger.info("ChefAI API %s ready (model=%s)", settings.app_version, settings.ai_model)
    return app


app = create_app()
