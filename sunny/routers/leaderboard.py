from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from sunny.core.deps import get_user_or_404
from sunny.db.database import get_db
from sunny.db.models import User
from sunny.services.leveling import level_from_xp

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("")
def leaderboard(
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    limit = max(1, min(200, int(limit)))
    offset = max(0, int(offset))

    rows = db.execute(
        select(User.id, User.name, User.total_xp, User.current_streak)
        .order_by(desc(User.total_xp), User.id.asc())
        .limit(limit)
        .offset(offset)
    ).all()

    out = []
    for i, r in enumerate(rows):
        xp = int(r.total_xp or 0)
        out.append({
            "rank": offset + i + 1,
            "userId": r.id,
            "name": r.name,
            "totalXp": xp,
            "level": level_from_xp(xp),
            "currentStreak": int(r.current_streak or 0),
        })
    return {"items": out, "limit": limit, "offset": offset}


@router.get("/{user_id}")
def user_rank(user_id: str, db: Session = Depends(get_db)):
    u = get_user_or_404(db, user_id)
    # rank: nb d'utilisateurs avec plus d'XP + 1
    above = db.execute(select(func.count()).select_from(User).where(User.total_xp > u.total_xp)).scalar_one()
    total = db.execute(select(func.count()).select_from(User)).scalar_one()
    xp = int(u.total_xp or 0)
    return {
        "userId": u.id,
        "name": u.name,
        "totalXp": xp,
        "level": level_from_xp(xp),
        "rank": int(above or 0) + 1,
        "totalUsers": int(total or 0),
    }
