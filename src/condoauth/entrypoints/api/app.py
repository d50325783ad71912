"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI

from condoauth.bootstrap import Services

from .deps import lifespan
from .routes import api_router


def create_app(services: Services | None = None) -> FastAPI:
    """Create the HTTP application.

    Args:
        services: Pre-built services. Built from the environment at startup
            when omitted.
    """
    app = FastAPI(
        title="condoauth",
        description="Authorization and session security for condominium management",
        version="0.1.0",
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )
    if services is not None:
        app.state.services = services

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
