"""
FastAPI application serving the discovery API.
"""
from fastapi import FastAPI

from ..config import get_settings
from .discovery import router as discovery_router


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Smart plug and bulb discovery",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.include_router(discovery_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "smarthome_link.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
    )
