import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from kyn.config import settings
from kyn.core.errors import KynError
from kyn.core.rate_limit import limiter
from kyn.modules.auth import routes as auth_routes
from kyn.modules.profiles import routes as profiles_routes
from kyn.modules.families import routes as families_routes
from kyn.modules.invites import routes as invites_routes
from kyn.modules.feed import routes as feed_routes
from kyn.modules.messages import routes as messages_routes
from kyn.modules.family_tree import routes as family_tree_routes
from kyn.modules.tasks import routes as tasks_routes
from kyn.modules.events import routes as events_routes
from kyn.modules.polls import routes as polls_routes
from kyn.modules.games import routes as games_routes
from kyn.realtime import routes as realtime_routes
from kyn.realtime.broker import RealtimeBroker
from kyn.realtime.supabase_feed import SupabaseChangeFeed

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.state.broker = RealtimeBroker(SupabaseChangeFeed())
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(KynError)
async def kyn_error_handler(request: Request, exc: KynError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "operation_failed"})
    return JSONResponse(status_code=500, content={"detail": str(exc), "code": "operation_failed"})


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


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(families_routes.router, prefix="/api/v1")
app.include_router(invites_routes.router, prefix="/api/v1")
app.include_router(feed_routes.router, prefix="/api/v1")
app.include_router(messages_routes.router, prefix="/api/v1")
app.include_router(family_tree_routes.router, prefix="/api/v1")
app.include_router(tasks_routes.router, prefix="/api/v1")
app.include_router(events_routes.router, prefix="/api/v1")
app.include_router(polls_routes.router, prefix="/api/v1")
app.include_router(games_routes.router, prefix="/api/v1")
app.include_router(realtime_routes.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    logger.info(f"Optional features: {settings.get_enabled_features()}")


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.broker.close()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to kyn-backend", "status": "healthy"}


@app.get("/api/v1/config/features")
async def features():
    """Which optional feature pages (maps, weather, video) are configured"""
    return settings.get_enabled_features()


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with Supabase checks if needed."""
    return {"status": "ready"}
