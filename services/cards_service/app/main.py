"""FastAPI application for the Cards Service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.cards_service.routers import cards_router, public_router

settings = get_settings()


def create_app() -> FastAPI:
    """Create and configure the Cards Service FastAPI app."""
    app = FastAPI(
        title="Tapcard Cards Service",
        version="0.1.0",
        description="Card editing, publishing, public lookup and QR codes.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_BASE_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "cards"}

    app.include_router(cards_router)
    app.include_router(public_router)

    return app


app = create_app()
