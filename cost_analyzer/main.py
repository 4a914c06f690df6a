"""
Main FastAPI application bootstrap.
Builds the pricing stack once per application and includes routers.
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI

from cost_analyzer.core.config import config
from cost_analyzer.api.pricing import router as pricing_router
from cost_analyzer.middleware.request_size_limiter import RequestSizeLimiterMiddleware
from cost_analyzer.services.cost_service import CostAggregationService, create_cost_service


logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(cost_service: Optional[CostAggregationService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        cost_service: Pre-built cost service (built from configuration on
            startup if None)

    Returns:
        Configured FastAPI app
    """
    # Fail fast with a clear message on bad configuration
    try:
        config.validate()
    except ValueError as error:
        raise RuntimeError(f"Configuration error: {error}") from error

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "cost_service", None) is None:
            app.state.cost_service = create_cost_service()
            logger.info(
                "Pricing stack ready (catalog region=%s, persistent cache=%s)",
                config.AWS_PRICING_REGION,
                config.PRICING_CACHE_DIR if config.PRICING_PERSISTENT_CACHE_ENABLED else "disabled",
            )
        yield

    app = FastAPI(
        title="Template Cost Analyzer",
        description="Monthly cost deltas for infrastructure template changes",
        lifespan=lifespan,
    )
    app.state.cost_service = cost_service

    app.add_middleware(RequestSizeLimiterMiddleware)
    app.include_router(pricing_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
