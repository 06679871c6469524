from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sunny.core.deps import get_mission_service
from sunny.db.database import get_db
from sunny.models.mission import GradeRequest, GradeResponse, NextMissionResponse
from sunny.services.missions import MissionService

router = APIRouter(prefix="/api/mission", tags=["mission"])


@router.get("/next", response_model=NextMissionResponse)
def next_mission(
    userId: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    service: MissionService = Depends(get_mission_service),
):
    return service.next_mission(db, userId)


@router.post("/grade", response_model=GradeResponse)
def grade_mission(
    body: GradeRequest,
    db: Session = Depends(get_db),
    service: MissionService = Depends(get_mission_service),
):
    return service.grade(db, body)
