"""
Adaptation-state repository.

Maps :class:`AdaptationState` onto four key-value entries per user::

    user:{id}:weights    {"sleep": .., "hrv": .., "rpe": .., "raceProximity": ..}
    user:{id}:health     "ok" | "returning" | "sick"
    user:{id}:raceWeeks  int | null
    user:{id}:lastRun    "YYYY-Www" | null
"""

from typing import Union

from app.db.repositories.key_value import KeyValueRepository
from app.schemas.activity import HealthState
from app.schemas.adaptation import AdaptationState
from app.schemas.reasoning import Weights

_WEIGHT_KEYS = { "sleep": "sleep", "hrv": "hrv", "rpe": "rpe", "race_proximity": "raceProximity" }


def _key(user_id: Union[int, str], name: str) -> str:
    return f"user:{user_id}:{name}"


class AdaptationStateRepository:
    """Load / save the carried adaptation state of one user."""

    def __init__(self, kv: KeyValueRepository):
        self.kv = kv

    def load(self, user_id: Union[int, str]) -> AdaptationState:
        """Missing keys fall back to the defaults of a fresh state."""
        default = AdaptationState()
        stored_weights = self.kv.load(_key(user_id, "weights"))
        weights = default.weights
        if stored_weights:
            weights = Weights(**{ field: stored_weights.get(stored, getattr(default.weights, field))
                                  for field, stored in _WEIGHT_KEYS.items() })

        return AdaptationState(weights=weights,
                               health=HealthState(self.kv.load(_key(user_id, "health"), default.health.value)),
                               race_weeks=self.kv.load(_key(user_id, "raceWeeks"), None),
                               last_run_week=self.kv.load(_key(user_id, "lastRun"), None), )

    def save(self, user_id: Union[int, str], state: AdaptationState) -> AdaptationState:
        """Write all four keys in a single transaction."""
        weights = { stored: getattr(state.weights, field) for field, stored in _WEIGHT_KEYS.items() }
        self.kv.save(_key(user_id, "weights"), weights, commit=False)
        self.kv.save(_key(user_id, "health"), state.health.value, commit=False)
        self.kv.save(_key(user_id, "raceWeeks"), state.race_weeks, commit=False)
        self.kv.save(_key(user_id, "lastRun"), state.last_run_week, commit=False)
        self.kv.session.commit()
        return state
