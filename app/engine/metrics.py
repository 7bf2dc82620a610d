"""
Weekly load metrics derived from the activity history.

Everything here is recomputed on demand from the (append-only) activity
list.  Weeks are ISO weeks starting on Monday and keyed ``YYYY-Www``.
"""

from __future__ import annotations

import datetime
from collections import defaultdict
from typing import Iterable, Sequence

from app.core.logging_config import get_logger
from app.core.numeric import clamp, mean, pstdev, require_all_non_negative, round_half_up
from app.schemas.activity import Activity
from app.schemas.metrics import WeeklyACWR, WeeklyKm, WeeklyMetric

logger = get_logger(__name__)

_CHRONIC_WEEKS = 4
_MAX_VALID_PACE = 15.0  # min/km
_QUALITY_HR = 160.0
_QUALITY_MIN_KM = 5.0
_MIN_PACES_FOR_MONOTONY = 3


# ======================================================================
# ISO week helpers
# ======================================================================


def iso_week_key(date: datetime.date) -> str:
    iso_year, iso_week, _ = date.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def week_start(date: datetime.date) -> datetime.date:
    """Monday of the ISO week containing *date*."""
    return date - datetime.timedelta(days=date.weekday())


def _check(activities: Iterable[Activity]) -> list[Activity]:
    return [a.validate_numbers() for a in activities]


# ======================================================================
# Weekly km series + simple ACWR
# ======================================================================


def weekly_km_series(activities: Sequence[Activity], as_of: datetime.date, weeks_back: int = 10) -> list[WeeklyKm]:
    """Contiguous weekly distance totals ending with the week of *as_of*."""
    by_week: dict[str, float] = defaultdict(float)
    for activity in _check(activities):
        by_week[iso_week_key(activity.date)] += activity.distance_km or 0.0

    last_monday = week_start(as_of)
    series = []
    for offset in range(weeks_back - 1, -1, -1):
        monday = last_monday - datetime.timedelta(weeks=offset)
        key = iso_week_key(monday)
        series.append(WeeklyKm(week_key=key, week_start=monday, km=round_half_up(by_week.get(key, 0.0), 1)))
    return series


def acwr_from_weekly(series: Sequence[WeeklyKm]) -> list[WeeklyACWR]:
    """Ratio of each week to the mean of up to four previous weeks.

    Without previous load the chronic value defaults to 1.
    """
    result = []
    for i, week in enumerate(series):
        previous = [w.km for w in series[max(0, i - _CHRONIC_WEEKS):i]]
        chronic = mean(previous) or 1.0
        result.append(WeeklyACWR(week_key=week.week_key, km=week.km, chronic_km=chronic,
                                 acwr=round_half_up(week.km / chronic, 2)))
    return result


def chronic_km(last_weeks_km: Sequence[float]) -> float:
    """Mean weekly distance of the given weeks (0 for no data)."""
    return mean(require_all_non_negative("last_weeks_km", last_weeks_km))


# ======================================================================
# Full weekly metrics
# ======================================================================


def _monotony(paces: list[float]) -> float:
    if len(paces) < _MIN_PACES_FOR_MONOTONY:
        return 1.0
    avg = mean(paces)
    spread = pstdev(paces)
    if avg == 0 or spread == 0:
        return 1.0
    return avg / spread


def _compute_week(key: str, monday: datetime.date, runs: list[Activity], previous_loads: list[float]) -> WeeklyMetric:
    total_km = sum(a.distance_km or 0.0 for a in runs)
    hrs = [a.hr_avg for a in runs if a.hr_avg]
    avg_hr = mean(hrs) if hrs else None

    paces = [a.pace_min_per_km for a in runs if a.pace_min_per_km is not None]
    avg_pace = mean(paces) if paces else None
    if avg_pace is not None and not (0 < avg_pace < _MAX_VALID_PACE):
        avg_pace = None

    chronic = None
    acwr = None
    if len(previous_loads) >= _CHRONIC_WEEKS:
        chronic = mean(previous_loads[-_CHRONIC_WEEKS:])
        if chronic > 0:
            acwr = total_km / chronic

    monotony = _monotony(paces)
    return WeeklyMetric(week_key=key, week_start=monday, total_distance_km=total_km,
                        total_duration_min=sum(a.duration_min or 0.0 for a in runs), avg_hr=avg_hr,
                        avg_pace=avg_pace, long_run_km=max([a.distance_km or 0.0 for a in runs], default=0.0),
                        acute_load=total_km, chronic_load=chronic, acwr=acwr,
                        fatigue_index=None if acwr is None else clamp((acwr - 0.8) / 1.0, 0.0, 1.0),
                        monotony=monotony, strain=total_km * monotony,
                        efficiency_score=avg_hr / avg_pace if avg_hr and avg_pace else None,
                        elevation_gain_m=sum(a.elevation_gain_m or 0.0 for a in runs), run_count=len(runs),
                        quality_sessions=sum(1 for a in runs if (a.hr_avg or 0) > _QUALITY_HR
                                             and (a.distance_km or 0) >= _QUALITY_MIN_KM), )


def compute_weekly_metrics(activities: Sequence[Activity]) -> list[WeeklyMetric]:
    """One :class:`WeeklyMetric` per ISO week from the first to the last
    activity, with empty weeks zero-filled.
    """
    checked = _check(activities)
    if not checked:
        return []

    by_monday: dict[datetime.date, list[Activity]] = defaultdict(list)
    for activity in checked:
        by_monday[week_start(activity.date)].append(activity)

    first = min(by_monday)
    last = max(by_monday)
    metrics: list[WeeklyMetric] = []
    loads: list[float] = []
    monday = first
    while monday <= last:
        week = _compute_week(iso_week_key(monday), monday, by_monday.get(monday, []), loads)
        loads.append(week.acute_load)
        metrics.append(week)
        monday += datetime.timedelta(weeks=1)

    logger.debug("Weekly metrics computed", extra={ "ctx_weeks": len(metrics), "ctx_activities": len(checked) })
    return metrics
