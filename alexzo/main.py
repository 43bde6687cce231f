"""
Alexzo API - FastAPI Application

Main entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from alexzo.account.routes import router as account_router
from alexzo.core.config import Settings, get_settings
from alexzo.core.database import Database
from alexzo.core.errors import register_exception_handlers
from alexzo.core.logging import configure_logging
from alexzo.core.security import FirebaseTokenVerifier, IdentityVerifier
from alexzo.custom_apis.routes import router as custom_apis_router
from alexzo.gallery import GalleryStore, InMemoryGalleryStore, RedisGalleryStore
from alexzo.gallery.routes import router as gallery_router
from alexzo.gateway import ProxyGateway
from alexzo.gateway.routes import router as gateway_router
from alexzo.keys import InMemoryKeyStore, KeyManager, KeyStore, RedisKeyStore, UsageTracker
from alexzo.keys.routes import router as keys_router
from alexzo.leads.routes import router as leads_router
from alexzo.ratelimit import RateLimitConfig, RateLimiter
from alexzo.search.routes import router as search_router

logger = structlog.get_logger(__name__)


def build_key_store(settings: Settings) -> Optional[KeyStore]:
    """Key store for the configured backend, None when unconfigured"""
    if settings.KEY_STORE_BACKEND == "memory":
        return InMemoryKeyStore(settings.USAGE_LOG_MAX_ENTRIES)
    if not settings.REDIS_URL:
        logger.warning("Key store not configured", reason="REDIS_URL unset")
        return None
    return RedisKeyStore.from_url(settings.REDIS_URL, settings.USAGE_LOG_MAX_ENTRIES)


def build_gallery_store(key_store: Optional[KeyStore]) -> Optional[GalleryStore]:
    """Gallery store on the same backend as the key store"""
    if key_store is None:
        return None
    if isinstance(key_store, RedisKeyStore):
        return RedisGalleryStore(key_store.redis)
    return InMemoryGalleryStore()


def build_identity_verifier(settings: Settings) -> Optional[IdentityVerifier]:
    if not settings.FIREBASE_PROJECT_ID:
        logger.warning("Identity verifier not configured", reason="FIREBASE_PROJECT_ID unset")
        return None
    return FirebaseTokenVerifier(settings.FIREBASE_PROJECT_ID, settings.FIREBASE_JWKS_URL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events"""
    settings: Settings = app.state.settings

    # Startup
    logger.info("Starting service",
                service=settings.APP_NAME,
                version=settings.APP_VERSION,
                environment="development" if settings.DEBUG else "production")

    await app.state.database.init_models()
    logger.info("Database tables created/verified",
                backend=app.state.database.engine.url.get_backend_name())

    owns_http_client = app.state.http_client is None
    if owns_http_client:
        app.state.http_client = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    yield

    # Shutdown
    logger.info("Shutting down service", service=settings.APP_NAME)
    if app.state.usage_tracker is not None:
        await app.state.usage_tracker.drain()
    if app.state.key_store is not None:
        await app.state.key_store.close()
    if owns_http_client:
        await app.state.http_client.aclose()
        app.state.http_client = None
    await app.state.database.close()


def create_app(
    settings: Optional[Settings] = None,
    *,
    key_store: Optional[KeyStore] = None,
    identity_verifier: Optional[IdentityVerifier] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
    gallery_store: Optional[GalleryStore] = None
) -> FastAPI:
    """
    Build the FastAPI application

    Collaborators not passed in are built from settings. They are kept on
    ``app.state`` and reached through the dependencies in alexzo.dependencies.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Search proxy, API key gateway, user dashboard data and lead capture for Alexzo",
        lifespan=lifespan,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json"
    )

    if key_store is None:
        key_store = build_key_store(settings)
    if gallery_store is None:
        gallery_store = build_gallery_store(key_store)
    if identity_verifier is None:
        identity_verifier = build_identity_verifier(settings)
    if rate_limiter is None:
        rate_limiter = RateLimiter(RateLimitConfig(
            limit=settings.SEARCH_RATE_LIMIT,
            window_seconds=settings.SEARCH_RATE_WINDOW_SECONDS,
            prune_interval_seconds=settings.SEARCH_RATE_PRUNE_INTERVAL_SECONDS
        ))

    key_manager = None
    usage_tracker = None
    if key_store is not None:
        key_manager = KeyManager(
            key_store,
            prefix=settings.API_KEY_PREFIX,
            suffix_length=settings.API_KEY_SUFFIX_LENGTH
        )
        usage_tracker = UsageTracker(key_store)

    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.http_client = http_client
    app.state.key_store = key_store
    app.state.gallery_store = gallery_store
    app.state.key_manager = key_manager
    app.state.usage_tracker = usage_tracker
    app.state.identity_verifier = identity_verifier
    app.state.search_rate_limiter = rate_limiter
    app.state.gateway = ProxyGateway(key_manager, usage_tracker, settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Mount Prometheus metrics
    app.mount("/metrics", make_asgi_app())

    @app.get("/healthz")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "service": "alexzo-api",
            "key_store": key_store is not None,
            "gallery": gallery_store is not None,
            "identity": identity_verifier is not None,
            "rate_limit": rate_limiter.get_stats()
        }

    api_router = APIRouter()
    api_router.include_router(search_router)
    api_router.include_router(gateway_router)
    api_router.include_router(keys_router)
    api_router.include_router(leads_router)
    api_router.include_router(gallery_router)
    api_router.include_router(custom_apis_router)
    api_router.include_router(account_router)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    logger.info("API routes mounted", prefix=settings.API_PREFIX)
    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "alexzo.main:create_app",
        factory=True,
        host=_settings.HOST,
        port=_settings.PORT,
        reload=_settings.DEBUG
    )
