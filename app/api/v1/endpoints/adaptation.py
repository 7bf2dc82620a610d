"""
Adaptation endpoints.

Per-user carried state and the once-per-week adaptive run.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.api.dependencies import get_resolver_config
from app.db.session import get_db
from app.engine.ownership import ResolverConfig
from app.schemas.adaptation import AdaptationState, WeeklyRunRequest, WeeklyRunResponse
from app.services.adaptation_service import AdaptationService

router = APIRouter()


@router.get("/{user_id}/state", summary="Get the carried adaptation state.", response_model=AdaptationState, )
def get_state(user_id: str, db: Session = Depends(get_db)):
    """Unknown users get the default state (default weights, health ok)."""
    return AdaptationService(db).get_state(user_id)


@router.put("/{user_id}/state", summary="Replace the carried adaptation state.", response_model=AdaptationState, )
def put_state(user_id: str, state: AdaptationState, db: Session = Depends(get_db)):
    return AdaptationService(db).put_state(user_id, state)


@router.post("/{user_id}/run", summary="Run the weekly adaptive pipeline.", response_model=WeeklyRunResponse, )
def run_week(user_id: str, data: WeeklyRunRequest,
             as_of: Optional[datetime.date] = Query(None, description="Reference date (defaults to today)"),
             force: bool = Query(False, description="Run even if this ISO week already ran"),
             config: ResolverConfig = Depends(get_resolver_config), db: Session = Depends(get_db), ):
    """
    Runs at most once per ISO week unless ``force`` is set:
    - first call of the week: full pipeline, next state stored
    - later calls: ``skipped=true`` with the stored state
    """
    return AdaptationService(db).run_week(user_id, data, as_of, force, config)
