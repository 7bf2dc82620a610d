"""Tests for the key-value store and the adaptation-state mapping.

Runs against an in-memory SQLite database; no server needed.
"""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.init_db import init_db
from app.db.repositories.adaptation_state import AdaptationStateRepository
from app.db.repositories.key_value import KeyValueRepository
from app.schemas.activity import HealthState
from app.schemas.adaptation import AdaptationState
from app.schemas.reasoning import Weights


@pytest.fixture
def session():
    engine = create_engine("sqlite://", connect_args={ "check_same_thread": False }, poolclass=StaticPool)
    init_db(engine)
    with Session(engine) as db:
        yield db
    SQLModel.metadata.drop_all(engine)


class TestKeyValueRepository:
    def test_missing_key_returns_default(self, session):
        assert KeyValueRepository(session).load("nope", default=42) == 42

    @pytest.mark.parametrize("value", [1, 0.5, "ok", None, [1, 2], { "a": { "b": True } }])
    def test_json_values(self, session, value):
        repo = KeyValueRepository(session)
        repo.save("k", value)
        assert repo.load("k", default="missing") == value

    def test_save_overwrites(self, session):
        repo = KeyValueRepository(session)
        first = repo.save("k", 1)
        stamp = first.updated_at
        second = repo.save("k", 2)
        assert repo.load("k") == 2
        assert second.updated_at >= stamp

    def test_delete(self, session):
        repo = KeyValueRepository(session)
        repo.save("k", 1)
        assert repo.delete("k") is True
        assert repo.delete("k") is False
        assert repo.load("k") is None

    def test_keys_with_prefix(self, session):
        repo = KeyValueRepository(session)
        for key in ("user:1:health", "user:1:weights", "user:2:health"):
            repo.save(key, "x")
        assert repo.keys_with_prefix("user:1:") == ["user:1:health", "user:1:weights"]

    def test_get_entry(self, session):
        repo = KeyValueRepository(session)
        assert repo.get_entry("k") is None
        repo.save("k", { "a": 1 })
        entry = repo.get_entry("k")
        assert entry.key == "k"
        assert entry.value == { "a": 1 }
        assert entry.updated_at is not None


class TestAdaptationStateRepository:
    def test_unknown_user_gets_default_state(self, session):
        assert AdaptationStateRepository(KeyValueRepository(session)).load("u1") == AdaptationState()

    def test_round_trip(self, session):
        repo = AdaptationStateRepository(KeyValueRepository(session))
        state = AdaptationState(weights=Weights(sleep=0.5, hrv=0.4, rpe=0.3, race_proximity=0.9),
                                health=HealthState.RETURNING, race_weeks=3, last_run_week="2026-W11")
        repo.save("u1", state)
        assert repo.load("u1") == state
        assert repo.load("u2") == AdaptationState()

    def test_storage_keys(self, session):
        kv = KeyValueRepository(session)
        AdaptationStateRepository(kv).save(7, AdaptationState(race_weeks=None, last_run_week="2026-W02"))
        assert kv.keys_with_prefix("user:7:") == ["user:7:health", "user:7:lastRun", "user:7:raceWeeks",
                                                 "user:7:weights"]
        assert kv.load("user:7:weights") == { "sleep": 0.8, "hrv": 0.7, "rpe": 0.6, "raceProximity": 0.9 }
        assert kv.load("user:7:lastRun") == "2026-W02"

    def test_partial_weights_fall_back_to_defaults(self, session):
        kv = KeyValueRepository(session)
        kv.save("user:u:weights", { "sleep": 0.3 })
        state = AdaptationStateRepository(kv).load("u")
        assert state.weights == Weights(sleep=0.3)
