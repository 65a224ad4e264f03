#!/usr/bin/env python3
"""
Error handlers for the web application.

Engine exceptions (core/exceptions.py) are rendered with a uniform body:
{"success": false, "error": "...", "type": "<ExceptionClass>"}.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    PlacementError,
    NotFoundError,
    ConflictError,
    AuthorizationError,
    ValidationError,
    CapacityError,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "type": error_type
        }
    )


def status_code_for(exc: PlacementError) -> int:
    # Subclasses first: NotFoundError and ConflictError are ValidationErrors
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (ConflictError, CapacityError)):
        return 409
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, ValidationError):
        return 400
    return 500


async def placement_exception_handler(
    request: Request,
    exc: PlacementError
) -> JSONResponse:
    """
    Handle engine exceptions.

    Args:
        request: The FastAPI request.
        exc: The engine exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Engine error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    return _error_response(exc.status_code, exc.detail, "HTTPException")


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and parameters."""
    return _error_response(422, jsonable_encoder(exc.errors()), "RequestValidationError")


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The FastAPI request.
        exc: The exception.

    Returns:
        JSONResponse with error details.
    """
    logger.exception(f"Unexpected error in {request.url.path}")

    return _error_response(500, "Internal server error", "InternalError")
