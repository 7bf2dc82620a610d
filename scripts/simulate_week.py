"""Simulate weekly metrics, ACWR zones and one adaptive week from a sample run log."""

import datetime
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.engine.adaptation import run_weekly_adaptation
from app.engine.metrics import compute_weekly_metrics
from app.engine.zones import classify_zone, trend_direction
from app.schemas.activity import Activity, RunFeedback
from app.schemas.adaptation import AdaptationState, WeeklyRunRequest
from app.schemas.race import ActiveRace, RacePriority

# ─── Sample log: (date, km, minutes, rpe, sleep h, hrv, avg hr, elevation m) ──
RAW_DATA = [
    ("2026-08-03", 8.0, 46, 4, 7.5, 62, 142, 40),
    ("2026-08-05", 10.0, 55, 6, 7.0, 60, 158, 60),
    ("2026-08-08", 16.0, 96, 5, 8.0, 64, 146, 180),
    ("2026-08-10", 6.0, 35, 3, 7.5, 63, 138, 20),
    ("2026-08-12", 12.0, 62, 7, 6.5, 57, 163, 80),
    ("2026-08-15", 18.0, 108, 6, 7.5, 61, 149, 220),
    ("2026-08-18", 8.0, 47, 4, 7.0, 60, 141, 30),
    ("2026-08-20", 11.0, 58, 7, 6.0, 55, 165, 70),
    ("2026-08-22", 20.0, 122, 7, 7.0, 58, 151, 300),
    ("2026-08-25", 8.0, 46, 4, 7.5, 62, 140, 40),
    ("2026-08-27", 12.0, 61, 8, 6.0, 52, 167, 90),
    ("2026-08-29", 24.0, 150, 8, 6.5, 50, 153, 420),
    ("2026-09-01", 6.0, 37, 5, 6.0, 51, 145, 10),
    ("2026-09-03", 10.0, 54, 8, 5.5, 49, 166, 60),
    ("2026-09-05", 26.0, 168, 9, 6.0, 47, 155, 500),
    ("2026-09-08", 5.0, 31, 6, 6.0, 48, 147, 0),
]

FEEDBACK = [
    ("2026-09-05", 9, 7),
    ("2026-09-08", 6, 5),
]


def main():
    activities = [Activity(date=datetime.date.fromisoformat(d), distance_km=km, duration_min=mins, rpe=rpe,
                           sleep_hours=sleep, hrv=hrv, hr_avg=hr, elevation_gain_m=elev)
                  for d, km, mins, rpe, sleep, hrv, hr, elev in RAW_DATA]
    feedback = [RunFeedback(date=datetime.date.fromisoformat(d), rpe=rpe, soreness=sore) for d, rpe, sore in FEEDBACK]

    # ── Weekly metrics ──────────────────────────────────────────────
    weeks = compute_weekly_metrics(activities)
    print()
    print("=" * 96)
    print(f"{'Week':<10} {'Km':>7} {'Runs':>5} {'Chronic':>8} {'ACWR':>6} {'Zone':<13} {'Trend':<8} "
          f"{'Monot.':>7} {'Elev':>6} {'Q':>3}")
    print("=" * 96)

    series: list[float] = []
    for week in weeks:
        if week.acwr is not None:
            series.append(week.acwr)
        zone = classify_zone(week.acwr)
        chronic = f"{week.chronic_load:>8.1f}" if week.chronic_load is not None else f"{'--':>8}"
        acwr = f"{week.acwr:>6.2f}" if week.acwr is not None else f"{'--':>6}"
        print(f"{week.week_key:<10} {week.total_distance_km:>7.1f} {week.run_count:>5} {chronic} {acwr} "
              f"{zone.value:<13} {trend_direction(series).value:<8} {week.monotony:>7.2f} "
              f"{week.elevation_gain_m:>6.0f} {week.quality_sessions:>3}")

    # ── One adaptive week ───────────────────────────────────────────
    as_of = datetime.date(2026, 9, 9)
    request = WeeklyRunRequest(recent_activities=activities, this_week_plan_km_base=50, feedback=feedback,
                               active_race=ActiveRace(name="Autumn Trail 30K", priority=RacePriority.A, weeks_to=3,
                                                      surface="trail"), )
    result = run_weekly_adaptation(AdaptationState(), request, as_of)

    print()
    print("=" * 96)
    print(f"Adaptive run for {result.week_key}")
    print("=" * 96)
    print(f"Fatigue score : {result.reasoning.fatigue_score:.3f}  ({result.reasoning.reason})")
    print(f"Target km     : {result.target.target_km}  (fatigue x{result.target.fatigue_scale}, "
          f"taper x{result.target.taper_factor}, surface x{result.target.trail_trim})")
    print(f"Skeleton      : long {result.skeleton.long_km} / mid {result.skeleton.mid_km} / "
          f"easy {result.skeleton.ez_km}  quality={result.skeleton.keep_quality}")
    print(f"Weights       : {result.state.weights.model_dump()}")
    print()
    for day in result.resolution.week.days:
        titles = ", ".join(f"{s.title} ({s.distance_km:g} km)" if s.distance_km else s.title or s.type.value
                           for s in day.sessions)
        print(f"{day.date.isoformat()} {day.date.strftime('%a'):<4} {titles}")
    print()
    print(f"Conflicts: {result.resolution.conflicts.total} (high {result.resolution.conflicts.high}, "
          f"medium {result.resolution.conflicts.medium})")
    for warning in result.warnings:
        print(f"  ! {warning.code.value}: {warning.message}")


if __name__ == "__main__":
    main()
