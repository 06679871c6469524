from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from sunny.db.models import User
from sunny.services.activity_planner import ActivityPlanner
from sunny.services.chat_service import ChatService
from sunny.services.missions import MissionService
from sunny.services.quiz_engine import QuizEngine

# Singletons simples en module-scope ; les tests les remplacent via app.dependency_overrides
_quiz_engine = QuizEngine()
_chat_service = ChatService()
_activity_planner = ActivityPlanner()
_mission_service = MissionService()


def get_quiz_engine() -> QuizEngine:
    return _quiz_engine


def get_chat_service() -> ChatService:
    return _chat_service


def get_activity_planner() -> ActivityPlanner:
    return _activity_planner


def get_mission_service() -> MissionService:
    return _mission_service


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
