from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from sunny.core.deps import get_user_or_404
from sunny.db.database import get_db
from sunny.db.models import Note, QuizSession, Skill
from sunny.routers.notes import note_out
from sunny.services.leveling import level_progress
from sunny.utils.dates import iso

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

RECENT_SESSIONS = 5
RECENT_NOTES = 10


def skill_status(mastery: float) -> str:
    mastery = float(mastery or 0)
    if mastery >= 70:
        return "mastered"
    if mastery >= 40:
        return "learning"
    return "struggling"


def next_mission(skills: list[Skill]) -> dict:
    if not skills:
        return {
            "title": "Get Started",
            "description": "Take your first quiz to discover your learning superpowers!",
            "skill": None,
            "urgency": "low",
        }

    # compétence la plus faible (à égalité : la plus ancienne)
    weakest = min(skills, key=lambda s: (float(s.mastery or 0), s.id))
    mastery = float(weakest.mastery or 0)
    return {
        "title": f"Practice {weakest.display_name}",
        "description": f"Your mastery of {weakest.display_name} is {mastery:.0f}%. Let's level it up!",
        "skill": weakest.domain,
        "urgency": "high" if mastery < 30 else "medium",
    }


@router.get("")
def dashboard(userId: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    user = get_user_or_404(db, userId)

    skills = db.execute(
        select(Skill).where(Skill.user_id == user.id).order_by(Skill.mastery.desc(), Skill.id.asc())
    ).scalars().all()

    sessions = db.execute(
        select(QuizSession)
        .where(QuizSession.user_id == user.id)
        .order_by(QuizSession.started_at.desc())
        .limit(RECENT_SESSIONS)
    ).scalars().all()

    notes = db.execute(
        select(Note)
        .where(Note.user_id == user.id)
        .order_by(Note.timestamp.desc())
        .limit(RECENT_NOTES)
    ).scalars().all()

    lp = level_progress(user.total_xp or 0)

    recent = []
    for s in sessions:
        gain = None
        if s.mastery_after is not None:
            gain = round(float(s.mastery_after) - float(s.mastery_before or 0), 1)
        recent.append({
            "sessionId": s.id,
            "topic": s.topic,
            "startedAt": iso(s.started_at),
            "completedAt": iso(s.completed_at),
            "correctAnswers": s.correct_answers,
            "totalQuestions": s.total_questions,
            "earnedPoints": s.earned_points,
            "masteryGain": gain,
        })

    return {
        "user": {
            "id": user.id,
            "name": user.name,
            "totalXp": int(user.total_xp or 0),
            "level": lp["level"],
            "levelProgress": lp,
            "currentStreak": int(user.current_streak or 0),
            "longestStreak": int(user.longest_streak or 0),
        },
        "skills": [
            {
                "domain": s.domain,
                "displayName": s.display_name,
                "category": s.category,
                "mastery": float(s.mastery or 0),
                "status": skill_status(s.mastery),
                "totalAttempts": s.total_attempts,
                "currentDifficulty": s.current_difficulty,
                "lastSeen": iso(s.last_seen),
            }
            for s in skills
        ],
        "nextMission": next_mission(list(skills)),
        "recentActivity": recent,
        "notes": [note_out(n).model_dump() for n in notes],
    }
