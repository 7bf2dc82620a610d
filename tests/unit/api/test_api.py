"""HTTP-level tests for the v1 API.

Uses an in-memory SQLite database in place of the configured one.
"""

import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.errors import OwnershipViolationError
from app.db.init_db import init_db
from app.db.session import get_db
from app.main import app

AS_OF = "2026-03-11"


@pytest.fixture
def client():
    engine = create_engine("sqlite://", connect_args={ "check_same_thread": False }, poolclass=StaticPool)
    init_db(engine)

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    SQLModel.metadata.drop_all(engine)


def _session_payload(session_id: str, origin: str, priority: str, cv: float, **extra) -> dict:
    payload = {
        "id": session_id,
        "type": "RUN",
        "role": "AEROBIC_DEVELOPMENT",
        "priority": priority,
        "origin": origin,
        "prescription": { "kind": "run", "distance_km": 10, "duration_min": 60 },
        "load_profile": { "cardiovascular": cv },
    }
    payload.update(extra)
    return payload


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAnalytics:
    @pytest.mark.parametrize(
        "acwr, zone",
        [(1.3, "sweet-spot"), (1.31, "caution"), (1.51, "high-risk"), (1.81, "extreme-risk"), (None, "sweet-spot")],
    )
    def test_zone(self, client, acwr, zone):
        response = client.post("/api/v1/analytics/zone", json={ "acwr": acwr, "weekly_km": 40 })
        assert response.status_code == 200
        assert response.json()["zone"] == zone

    def test_zone_invalid_input_is_422(self, client):
        response = client.post("/api/v1/analytics/zone", json={ "acwr": -1 })
        assert response.status_code == 422
        assert response.json()["field"] == "acwr"

    def test_trend(self, client):
        response = client.post("/api/v1/analytics/trend", json={ "values": [1.0, 1.0, 1.3, 1.3] })
        assert response.status_code == 200
        assert response.json()["trend"] == "rising"

    def test_weekly_metrics(self, client):
        activities = [{ "date": f"2026-02-{day:02d}", "distance_km": 10, "duration_min": 55 } for day in
                      (2, 9, 16, 23)] + [{ "date": "2026-03-02", "distance_km": 15, "duration_min": 80 }]
        response = client.post("/api/v1/analytics/weekly-metrics", json={ "activities": activities })
        body = response.json()
        assert response.status_code == 200
        assert len(body["weeks"]) == 5
        assert body["acwr_series"] == [1.5]


class TestPlanning:
    def test_target_km_scenario(self, client):
        payload = { "fatigue_score": 0.8, "chronic_km": 50, "this_week_plan_km_base": 50, "weeks_to_race": 0,
                    "priority": "A", "surface": "road" }
        response = client.post("/api/v1/planning/target-km", json=payload)
        assert response.status_code == 200
        assert response.json()["target_km"] == 23

    def test_target_km_negative_weeks_is_422(self, client):
        payload = { "fatigue_score": 0.5, "chronic_km": 50, "this_week_plan_km_base": 50, "weeks_to_race": -1 }
        response = client.post("/api/v1/planning/target-km", json=payload)
        assert response.status_code == 422

    def test_reason(self, client):
        response = client.post("/api/v1/planning/reason", json={ "race_proximity_weeks": 12 })
        body = response.json()
        assert response.status_code == 200
        assert body["fatigue_score"] == 0.0
        assert body["adjustments"]["volume_boost_pct"] == 10

    def test_week(self, client):
        response = client.post("/api/v1/planning/week", json={ "start_date": "2026-03-08", "target_km": 50 })
        body = response.json()
        assert response.status_code == 200
        assert body["skeleton"]["long_km"] == 14
        assert [d["date"] for d in body["week"]["days"]][0] == "2026-03-08"
        assert body["week"]["days"][6]["sessions"][0]["title"] == "Long Run"


class TestSessions:
    def test_resolve_day_removes_adaptive(self, client):
        day = { "date": "2026-03-10", "sessions": [
            _session_payload("long", "BASE_PLAN", "primary", 0.7),
            _session_payload("rec", "ADAPTIVE", "support", 0.5, role="RECOVERY_SUPPORT"),
        ] }
        response = client.post("/api/v1/sessions/resolve-day", json={ "day": day })
        body = response.json()
        assert response.status_code == 200
        assert [s["id"] for s in body["value"]["day"]["sessions"]] == ["long"]
        assert body["value"]["adaptation"]["sessions_removed"] == ["rec"]

    def test_resolve_day_reports_warnings(self, client):
        day = { "date": "2026-03-10", "sessions": [
            _session_payload("dup", "USER", "secondary", 0.2),
            _session_payload("dup", "USER", "secondary", 0.2),
        ] }
        response = client.post("/api/v1/sessions/resolve-day", json={ "day": day })
        assert [w["code"] for w in response.json()["warnings"]] == ["DUPLICATE_ID"]

    def test_resolve_day_flags_adaptive_primary_session(self, client):
        day = { "date": "2026-03-10", "sessions": [_session_payload("boost", "ADAPTIVE", "primary", 0.3)] }
        response = client.post("/api/v1/sessions/resolve-day", json={ "day": day })
        assert response.status_code == 200
        assert [w["code"] for w in response.json()["warnings"]] == ["ILLEGAL_CREATE"]

    def test_resolve_day_rejects_adaptive_primary_session_in_strict_mode(self, client):
        day = { "date": "2026-03-10", "sessions": [_session_payload("boost", "ADAPTIVE", "primary", 0.3)] }
        response = client.post("/api/v1/sessions/resolve-day", json={ "day": day, "guard_mode": "strict" })
        assert response.status_code == 409
        assert response.json()["session_id"] == "boost"

    def test_resolve_week(self, client):
        days = [{ "date": (datetime.date(2026, 3, 8) + datetime.timedelta(days=i)).isoformat(), "sessions": [] } for i
                in range(7)]
        days[1]["sessions"] = [_session_payload("a", "USER", "secondary", 0.2, intensity="high"),
                               _session_payload("b", "USER", "secondary", 0.2, intensity="high")]
        response = client.post("/api/v1/sessions/resolve-week", json={ "week": { "days": days } })
        body = response.json()
        assert response.status_code == 200
        assert body["value"]["conflicts"]["total"] == 1
        assert body["value"]["conflicts"]["by_type"]["OVERLOAD"] == 1

    def test_resolve_week_needs_seven_days(self, client):
        response = client.post("/api/v1/sessions/resolve-week", json={ "week": { "days": [] } })
        assert response.status_code == 422


class TestAdaptation:
    def test_default_state(self, client):
        response = client.get("/api/v1/adaptation/u1/state")
        body = response.json()
        assert response.status_code == 200
        assert body["health"] == "ok"
        assert body["last_run_week"] is None

    def test_put_state(self, client):
        state = { "weights": { "sleep": 0.5, "hrv": 0.5, "rpe": 0.5, "race_proximity": 0.5 }, "health": "sick",
                  "race_weeks": 4, "last_run_week": None }
        assert client.put("/api/v1/adaptation/u1/state", json=state).status_code == 200
        assert client.get("/api/v1/adaptation/u1/state").json() == state

    def test_run_once_per_week(self, client):
        payload = { "this_week_plan_km_base": 40 }
        first = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}", json=payload)
        second = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}", json=payload)
        forced = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}&force=true", json=payload)

        assert first.status_code == 200
        assert first.json()["skipped"] is False
        assert first.json()["week_key"] == "2026-W11"
        assert second.json()["skipped"] is True
        assert forced.json()["skipped"] is False

        state = client.get("/api/v1/adaptation/u1/state").json()
        assert state["last_run_week"] == "2026-W11"
        assert state["weights"] == forced.json()["state"]["weights"]

    def test_run_invalid_input_is_422(self, client):
        response = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}", json={ "this_week_plan_km_base": -5 })
        assert response.status_code == 422

    def test_strict_mode_keeps_telemetry_non_blocking(self, client):
        saturday = "2026-03-14"
        extra = _session_payload("user-run", "USER", "secondary", 0.5)
        payload = { "this_week_plan_km_base": 40, "extra_sessions": { saturday: [extra, extra] } }
        # duplicate ids in strict mode are telemetry only
        response = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}&guard_mode=strict", json=payload)
        assert response.status_code == 200
        assert "DUPLICATE_ID" in [w["code"] for w in response.json()["warnings"]]

    def test_ownership_violation_is_409(self, client, monkeypatch):
        def refuse(*args, **kwargs):
            raise OwnershipViolationError("ADAPTIVE may not delete session 'x'", session_id="x")

        monkeypatch.setattr("app.services.adaptation_service.run_weekly_adaptation", refuse)
        response = client.post(f"/api/v1/adaptation/u1/run?as_of={AS_OF}", json={ "this_week_plan_km_base": 40 })
        assert response.status_code == 409
        assert "may not delete" in response.json()["detail"]
