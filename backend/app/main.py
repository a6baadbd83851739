"""FastAPI application entrypoint.

Configures CORS, maps domain errors to HTTP responses, includes routers, and
exposes a healthcheck endpoint.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from .database import create_tables, dispose_engine
from .deps import get_settings
from .exceptions import CrmError
from .routers import auth as auth_router
from .routers import influencers as influencers_router
from .routers import campaigns as campaigns_router
from .routers import reminders as reminders_router
from .routers import analytics as analytics_router
from .telemetry import capture_exception, init_sentry
from . import schemas

# Import models so Alembic can discover metadata
from . import models  # noqa: F401


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Influencer CRM API",
        description="""
        CRM backend for influencer marketing.

        ## Authentication
        Log in via `/auth/login`; the session travels in the HTTP-only
        `auth-token` cookie.

        ## Resources
        - **Influencers**: Shared directory with notes and a message log
        - **Campaigns**: Per-user campaigns and the influencers inside them
        - **Reminders**: Dated follow-ups, optionally tied to an influencer or campaign
        - **Analytics**: Per-user campaign totals and distributions
        """,
        version="1.0.0",
        servers=[
            {
                "url": "http://localhost:8000",
                "description": "Development server"
            },
        ]
    )

    # Trust X-Forwarded-Proto from the load balancer so request.url.scheme is https in production
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    settings = get_settings()

    logger.info(f"[CORS] Allowed origins: {settings.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors -> {"detail": message} with the error's status code
    @app.exception_handler(CrmError)
    async def crm_error_handler(request: Request, exc: CrmError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Storage failures never leak driver detail to the client
    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"[DB] Unhandled storage error on {request.method} {request.url.path}")
        capture_exception(exc, extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Include all API routers
    app.include_router(auth_router.router)
    app.include_router(influencers_router.router)
    app.include_router(campaigns_router.router)
    app.include_router(reminders_router.router)
    app.include_router(analytics_router.router)

    @app.get(
        "/health",
        response_model=schemas.HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="""
        Simple health check endpoint to verify the API is running.

        Does not require authentication; suitable for load balancer checks.
        """
    )
    def health():
        return schemas.HealthResponse(status="ok")

    @app.on_event("startup")
    async def startup_event():
        init_sentry(settings.SENTRY_DSN, environment=settings.ENVIRONMENT)
        if settings.AUTO_CREATE_TABLES:
            create_tables()
            logger.info("[STARTUP] Tables created from ORM metadata")

    @app.on_event("shutdown")
    async def shutdown_event():
        dispose_engine()

    # Custom OpenAPI schema with security definitions
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
            servers=app.servers
        )

        openapi_schema["components"]["securitySchemes"] = {
            "cookieAuth": {
                "type": "apiKey",
                "in": "cookie",
                "name": settings.AUTH_COOKIE_NAME,
                "description": "JWT session token stored in an HTTP-only cookie"
            }
        }

        public_endpoints = ["/health", "/auth/register", "/auth/login", "/auth/logout"]

        for path in openapi_schema["paths"]:
            for method in openapi_schema["paths"][path]:
                if path in public_endpoints:
                    continue
                if "security" not in openapi_schema["paths"][path][method]:
                    openapi_schema["paths"][path][method]["security"] = [
                        {"cookieAuth": []}
                    ]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
    return app


app = create_app()
