import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from navstation.config import Settings, settings as default_settings
from navstation.core.dependencies import get_store, require_auth
from navstation.core.exceptions import AuthError, NavigationError
from navstation.core.rate_limit import configure_limiter, limiter
from navstation.database import EntityStore, create_store
from navstation.modules.auth import routes as auth_routes
from navstation.modules.configs import routes as configs_routes
from navstation.modules.groups import routes as groups_routes
from navstation.modules.orders import routes as orders_routes
from navstation.modules.sites import routes as sites_routes
from navstation.modules.auth.service import AuthService
from navstation.scripts.seed_demo_data import seed_demo_data

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

system_router = APIRouter(tags=["system"], dependencies=[Depends(require_auth)])


@system_router.get("/init")
async def init_database(store: EntityStore = Depends(get_store)):
    """(Re)create missing tables; existing data is kept"""
    store.init_schema()
    return {"success": True, "message": "Database initialised"}


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(settings: Optional[Settings] = None, store: Optional[EntityStore] = None) -> FastAPI:
    """
    Build the API application.

    The store, the auth gate and the rate limits are chosen here, once, from settings
    (or passed in directly, e.g. by tests) and shared with handlers through app.state.
    Served with `python -m navstation` or `uvicorn navstation.main:create_app --factory`.
    """
    settings = settings or default_settings
    if store is None:
        store = create_store(settings)
    store.init_schema()
    if settings.seed_demo_data:
        seed_demo_data(store)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.auth_service = AuthService(settings)
    configure_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(NavigationError)
    async def navigation_exception_handler(request: Request, exc: NavigationError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(auth_routes.router, prefix="/api")
    app.include_router(groups_routes.router, prefix="/api")
    app.include_router(sites_routes.router, prefix="/api")
    app.include_router(orders_routes.router, prefix="/api")
    app.include_router(configs_routes.router, prefix="/api")
    app.include_router(system_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"Application startup (storage={settings.storage_backend}, auth_enabled={settings.auth_enabled})"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        store.close()
        logger.info("Application shutdown")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness probe: the store must answer."""
        if not store.ping():
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    return app
