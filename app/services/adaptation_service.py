"""
Adaptation service.

Loads the carried adaptation state of a user, runs the weekly pipeline and
persists the next state.  Engine errors are translated to HTTP errors here.
"""

import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.errors import InvalidInputError, OwnershipViolationError
from app.core.logging_config import get_logger
from app.db.repositories.adaptation_state import AdaptationStateRepository
from app.db.repositories.key_value import KeyValueRepository
from app.engine.adaptation import run_weekly_adaptation
from app.engine.ownership import DEFAULT_CONFIG, ResolverConfig
from app.schemas.adaptation import AdaptationState, WeeklyRunRequest, WeeklyRunResponse

logger = get_logger(__name__)


class AdaptationService:
    """Service for the weekly adaptive run and its persisted state."""

    def __init__(self, session: Session):
        self.repository = AdaptationStateRepository(KeyValueRepository(session))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_state(self, user_id: str) -> AdaptationState:
        return self.repository.load(user_id)

    def put_state(self, user_id: str, state: AdaptationState) -> AdaptationState:
        """Replace the carried state (e.g. after a manual reset of the weights)."""
        logger.info("Adaptation state replaced", extra={ "ctx_user_id": user_id })
        return self.repository.save(user_id, state)

    def run_week(self, user_id: str, request: WeeklyRunRequest, as_of: Optional[datetime.date] = None,
                 force: bool = False, config: ResolverConfig = DEFAULT_CONFIG, ) -> WeeklyRunResponse:
        """Run the weekly pipeline for *user_id* and store the next state.

        A skipped run (week already processed) leaves the stored state untouched.
        """
        state = self.repository.load(user_id)
        try:
            result = run_weekly_adaptation(state, request, as_of or datetime.date.today(), force=force,
                                           config=config)
        except InvalidInputError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc), )
        except OwnershipViolationError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc), )

        if not result.skipped:
            self.repository.save(user_id, result.state)
        return result
