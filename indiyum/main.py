import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from indiyum.application.auth_service import AuthService
from indiyum.application.order_service import OrderService
from indiyum.application.review_service import ReviewService
from indiyum.core.clock import now_iso
from indiyum.core.config import Settings, settings as default_settings
from indiyum.core.errors import AppError
from indiyum.infrastructure.document_store import JsonFileDocumentStore
from indiyum.infrastructure.razorpay_gateway import RazorpayGateway
from indiyum.infrastructure.repositories.document_repository import DocumentRepository
from indiyum.infrastructure.session_store import SessionStore
from indiyum.interfaces import auth_api, orders_api, reviews_api
from indiyum.interfaces.IDocumentStore import IDocumentStore
from indiyum.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[IDocumentStore] = None,
    gateway: Optional[IPaymentGateway] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.PROJECT_NAME)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------
    # COMPOSITION ROOT
    # ---------------------------------------------------------
    repo = DocumentRepository(store or JsonFileDocumentStore(settings.DB_FILE))
    gateway = gateway or RazorpayGateway(settings)
    sessions = sessions or SessionStore(settings.REDIS_URL, ttl=settings.SESSION_TTL_SECONDS)

    app.state.settings = settings
    app.state.order_service = OrderService(repo=repo, gateway=gateway, settings=settings)
    app.state.review_service = ReviewService(repo=repo, timezone=settings.TIMEZONE)
    app.state.auth_service = AuthService(repo=repo, sessions=sessions, timezone=settings.TIMEZONE)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.reason} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message, "reason": "invalid_request"})

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "time": now_iso(settings.TIMEZONE)}

    # Include Routers
    app.include_router(orders_api.router)
    app.include_router(reviews_api.router)
    app.include_router(auth_api.router)

    logger.info(
        f"✅ {settings.PROJECT_NAME} ready (db={settings.DB_FILE}, "
        f"gateway={'on' if settings.gateway_configured else 'cod only'})"
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", default_settings.PORT))
    uvicorn.run(app, host="0.0.0.0", port=port)
