"""
bodash FastAPI Application
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bodash import __version__
from bodash.api.client import OptimizerAPIClient
from bodash.db.connection import create_db_and_tables, get_engine
from bodash.server.config import ServerConfig
from bodash.server.deps import get_api_client, set_config, translate_errors
from bodash.server.routes import (
    optimizations_router,
    measurements_router,
    insights_router,
)
from bodash.server.schemas import HealthResponse, OptimizerHealthResponse


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Server configuration (uses defaults if None)

    Returns:
        Configured FastAPI app
    """
    if config is None:
        config = ServerConfig()

    set_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        engine = get_engine(config.database_url)
        create_db_and_tables(engine)
        yield

    app = FastAPI(
        title="bodash - Bayesian Optimization Dashboard",
        description="REST API for configuring and monitoring optimizations",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(optimizations_router)
    app.include_router(measurements_router)
    app.include_router(insights_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            database=config.database_url.split("://")[0],
        )

    @app.get("/health/optimizer-api", response_model=OptimizerHealthResponse, tags=["health"])
    def optimizer_health(
        api: OptimizerAPIClient = Depends(get_api_client),
    ) -> OptimizerHealthResponse:
        """Health and GPU availability of the optimization API."""
        with translate_errors():
            return OptimizerHealthResponse(**api.health())

    return app


# Default app for uvicorn
app = create_app()
