"""Training-load engine: zones, weekly metrics, reasoning, taper, session ownership."""

from app.engine.adaptation import run_weekly_adaptation
from app.engine.ownership import ResolverConfig, resolve_day, resolve_week
from app.engine.reasoner import reason_weekly
from app.engine.taper import build_plan_week, build_week_skeleton, compute_target_km
from app.engine.zones import classify_zone, trend_direction

__all__ = [
    "run_weekly_adaptation",
    "ResolverConfig",
    "resolve_day",
    "resolve_week",
    "reason_weekly",
    "build_plan_week",
    "build_week_skeleton",
    "compute_target_km",
    "classify_zone",
    "trend_direction",
]
