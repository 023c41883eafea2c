"""FastAPI application for the Analytics Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.arq_config import close_arq_pool
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from prometheus_client import make_asgi_app
from services.analytics_service.routers import analytics_router
from slowapi.errors import RateLimitExceeded


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_arq_pool()


def create_app() -> FastAPI:
    """Create and configure the Analytics Service FastAPI app."""
    app = FastAPI(
        title="Tapcard Analytics Service",
        version="0.1.0",
        description="Card view/click tracking and cached analytics summaries.",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Tracking is called from public card pages on any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "analytics"}

    app.include_router(analytics_router)
    app.mount("/metrics", make_asgi_app())

    return app


app = create_app()
