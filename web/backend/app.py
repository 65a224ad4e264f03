#!/usr/bin/env python3
"""
Placement engine - FastAPI Application

HTTP adapter over the workflow, recommendation and scheduler services.

Usage:
    python -m web.backend.app

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.exceptions import PlacementError
from .config import get_config
from .exceptions import (
    placement_exception_handler,
    http_exception_handler,
    request_validation_handler,
    general_exception_handler
)
from .routers import (
    applications_router,
    approvals_router,
    recommendations_router,
    offers_router,
    scheduler_router
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    config = get_config()

    app = FastAPI(
        title="Placement Engine API",
        description="Opportunity matching, approval routing and placement workflow",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(PlacementError, placement_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(applications_router)
    app.include_router(approvals_router)
    app.include_router(recommendations_router)
    app.include_router(offers_router)
    app.include_router(scheduler_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "placement-api"}

    return app


app = create_app()


def main():
    """Run the web server."""
    import uvicorn

    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )
    logger.info(f"Starting Placement API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level=config.logging.level.lower()
    )


if __name__ == "__main__":
    main()
