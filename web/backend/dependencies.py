#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

import hmac
from datetime import datetime
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException

from core.app_context import AppContext
from database.models import utcnow
from database.repository import PlacementRepository
from database.uow import placement_uow
from .config import get_config


@lru_cache()
def get_app_context() -> AppContext:
    """Process-wide wired dependencies (engine, deliverer, lock)."""
    return AppContext.build(get_config())


def get_repo(ctx: AppContext = Depends(get_app_context)) -> Generator[PlacementRepository, None, None]:
    """
    FastAPI dependency that yields a repository inside one unit of work.

    The transaction commits when the endpoint returns and rolls back if it raises.

    Usage:
        @router.post("/endpoint")
        def my_endpoint(repo: PlacementRepository = Depends(get_repo)):
            ...
    """
    with placement_uow(ctx.session_factory) as repo:
        yield repo


def get_now() -> datetime:
    """Request clock; overridden in tests."""
    return utcnow()


def require_cron_token(
    authorization: Optional[str] = Header(default=None),
    ctx: AppContext = Depends(get_app_context),
) -> None:
    """Guard for externally triggered scheduler runs (`Authorization: Bearer <token>`)."""
    token = ctx.config.web.cron_token
    if not token:
        raise HTTPException(status_code=503, detail="Cron token is not configured")
    if not authorization or not hmac.compare_digest(authorization, f"Bearer {token}"):
        raise HTTPException(status_code=401, detail="Invalid or missing cron token")
