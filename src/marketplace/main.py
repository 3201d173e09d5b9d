"""
═══════════════════════════════════════════════════════════════════════════════
Marketplace — Application Entry Point
═══════════════════════════════════════════════════════════════════════════════

Application factory for the marketplace backend. The lifespan builds every
external collaborator once (PostgreSQL pool, Firebase verifier, Stripe
gateway, NATS publisher), stores it on ``app.state`` and closes it on shutdown.
Collaborators already present on ``app.state`` are left as they are.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace import __version__
from marketplace.adapters.firebase_auth import FirebaseTokenVerifier
from marketplace.adapters.stripe_gateway import StripeGateway
from marketplace.config import MarketplaceSettings, get_settings
from marketplace.database import apply_migrations, close_pool, create_pool
from marketplace.db.repositories.user_repo import UserRepository
from marketplace.events import EventPublisher
from marketplace.exceptions import MarketplaceError
from marketplace.memory_store import MemoryUserRepository

# ── API routers ──────────────────────────────────────────────────────────
from marketplace.api.auth import router as auth_router
from marketplace.api.health import router as health_router
from marketplace.api.payments import router as payments_router

# ═══════════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════════
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

STATUS_MAP = {
    "AUTH_ERROR": 401,
    "VALIDATION_ERROR": 422,
    "NOT_FOUND": 404,
    "PROVISIONING_FAILED": 500,
    "RETRIEVAL_FAILED": 500,
    "STORE_ERROR": 500,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Lifespan
# ═══════════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Marketplace lifespan.

    Startup:
        1. PostgreSQL pool + migrations (memory store if the DB is down,
           except in production where startup fails).
        2. Firebase token verifier (named firebase_admin app).
        3. Stripe gateway.
        4. NATS publisher (optional).

    Shutdown:
        NATS → Firebase app → DB, in reverse order.
    """
    settings: MarketplaceSettings = app.state.settings
    state = app.state
    logger.info(f"🚀 Marketplace v{__version__} starting ({settings.app_env})...")

    pool = None
    if getattr(state, "user_repo", None) is None:
        try:
            pool = await create_pool(settings)
            await apply_migrations(pool)
            state.user_repo = UserRepository(pool)
            logger.info("✅ Marketplace database pool initialized")
        except Exception as e:
            if pool is not None:
                await close_pool(pool)
                pool = None
            if settings.app_env == "production":
                logger.error(f"❌ Marketplace DB not available: {e}")
                raise
            logger.warning(f"⚠️  Marketplace DB not available — activating memory store: {e}")
            state.user_repo = MemoryUserRepository()

    own_verifier = getattr(state, "token_verifier", None) is None
    if own_verifier:
        state.token_verifier = FirebaseTokenVerifier.from_settings(settings)

    if getattr(state, "payment_gateway", None) is None:
        if not settings.stripe_secret_key:
            logger.warning("⚠️  STRIPE_SECRET_KEY is empty — onboarding calls will fail")
        state.payment_gateway = StripeGateway(
            settings.stripe_secret_key,
            account_type=settings.stripe_account_type,
            country=settings.stripe_account_country,
            timeout=settings.outbound_timeout_seconds,
        )

    own_events = getattr(state, "events", None) is None
    if own_events:
        state.events = EventPublisher(settings.nats_url)
        await state.events.connect()

    yield

    if own_events:
        await state.events.disconnect()
    if own_verifier:
        state.token_verifier.close()
    if pool is not None:
        await close_pool(pool)
    logger.info("🛑 Marketplace stopped")


# ═══════════════════════════════════════════════════════════════════════════════
# Application factory
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(settings: MarketplaceSettings | None = None) -> FastAPI:
    """Creates and configures the marketplace FastAPI application."""
    settings = settings or get_settings()

    _is_production = settings.app_env == "production"

    app = FastAPI(
        redirect_slashes=False,
        title="Marketplace",
        description=(
            "Marketplace backend: Firebase login and Stripe Connect "
            "seller onboarding."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if _is_production else "/docs",
        redoc_url=None if _is_production else "/redoc",
        openapi_url=None if _is_production else "/api/v1/openapi.json",
    )
    app.state.settings = settings

    # ── CORS middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    # ── API routers ──────────────────────────────────────────────────────
    v1_router = APIRouter(prefix="/api/v1")
    v1_router.include_router(auth_router)
    v1_router.include_router(payments_router)
    v1_router.include_router(health_router)
    app.include_router(v1_router)

    # ── Global MarketplaceError handler ──────────────────────────────────
    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
        """Maps domain codes to HTTP statuses; only ``message`` reaches the client."""
        status_code = STATUS_MAP.get(exc.code, 500)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.details}")
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Something went wrong"})

    # ── Root endpoint ────────────────────────────────────────────────────
    @app.get("/")
    async def root():
        return {
            "name": "Marketplace",
            "version": __version__,
            "api": {
                "v1": {
                    "health": "/api/v1/health",
                    "login": "/api/v1/auth/login",
                    "onboarding": "/api/v1/payments/onboarding",
                    "account": "/api/v1/payments/account",
                },
            },
        }

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Module-level application
# ═══════════════════════════════════════════════════════════════════════════════
app = create_app()


def main() -> None:
    """Runs the marketplace backend with Uvicorn."""
    settings = get_settings()
    logger.info(f"Starting Marketplace server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "marketplace.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
