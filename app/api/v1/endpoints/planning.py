"""
Planning endpoints: weekly reasoning, target volume and plan weeks.
"""

from fastapi import APIRouter

from app.engine.reasoner import reason_weekly
from app.engine.taper import build_plan_week, build_week_skeleton, explain_target_km
from app.schemas.plan import PlanWeekRequest, PlanWeekResponse, TaperInputs, TargetKmResponse
from app.schemas.reasoning import Reasoning, WeeklyReasoningInput

router = APIRouter()


@router.post("/reason", summary="Fatigue score, adjustments and updated weights for one week.",
             response_model=Reasoning, )
def reason(data: WeeklyReasoningInput):
    return reason_weekly(data)


@router.post("/target-km", summary="Target weekly distance after fatigue, taper and surface scaling.",
             response_model=TargetKmResponse, )
def target_km(data: TaperInputs):
    return explain_target_km(data)


@router.post("/week", summary="Build the seven-day plan week for a target distance.",
             response_model=PlanWeekResponse, )
def plan_week(data: PlanWeekRequest):
    skeleton = build_week_skeleton(data.target_km, data.fatigue_score, data.weeks_to_race)
    week = build_plan_week(data.start_date, data.target_km, data.fatigue_score, data.weeks_to_race)
    return PlanWeekResponse(skeleton=skeleton, week=week)
