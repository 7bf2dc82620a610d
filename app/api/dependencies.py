"""
Shared API dependencies.

Reusable FastAPI dependencies for resolver configuration.
"""

from typing import Optional

from fastapi import Query

from app.engine.ownership import ResolverConfig
from app.schemas.guards import GuardMode


def get_resolver_config(guard_mode: Optional[GuardMode] = Query(None, description="Overrides the server GUARD_MODE"),
                        ) -> ResolverConfig:
    """Resolver configuration from settings, optionally overriding the guard mode per request."""
    return ResolverConfig.from_settings(guard_mode=guard_mode)
