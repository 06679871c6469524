from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sunny.db.models import User, XpEvent
from sunny.services.leveling import level_from_xp
from sunny.utils.dates import previous_day, utcnow

logger = logging.getLogger(__name__)

ACTIVITY_DAYS_KEY = "activity_days"


def apply_xp(
    db: Session,
    *,
    user_id: str,
    amount: int,
    source: str,
    reason: Optional[str] = None,
    session_id: Optional[str] = None,
    question_index: Optional[int] = None,
    commit: bool = True,
) -> int:
    """
    Ajoute `amount` à User.total_xp + log XpEvent.
    Idempotence simple: si un XpEvent existe déjà pour (user_id, source, session_id, question_index),
    on NE ré-applique pas.
    """
    if session_id is not None and question_index is not None:
        exists = db.execute(
            select(XpEvent.id).where(
                XpEvent.user_id == user_id,
                XpEvent.source == source,
                XpEvent.session_id == session_id,
                XpEvent.question_index == question_index,
            )
        ).first()
        if exists:
            # déjà appliqué -> on renvoie le total actuel
            u = db.execute(select(User).where(User.id == user_id)).scalar_one()
            return int(u.total_xp or 0)

    u = db.execute(select(User).where(User.id == user_id)).scalar_one()
    u.total_xp = int(u.total_xp or 0) + int(amount)
    u.last_active = utcnow()

    db.add(
        XpEvent(
            user_id=user_id,
            source=source,
            amount=int(amount),
            reason=reason,
            session_id=session_id,
            question_index=question_index,
        )
    )
    # autoflush=False : rend l'event visible pour le garde d'idempotence suivant
    db.flush()

    if commit:
        db.commit()
        db.refresh(u)

    logger.debug("XP +%s for user %s (%s)", amount, user_id, source)
    return int(u.total_xp)


def append_activity(user: User, day: date) -> dict:
    """
    Enregistre un jour d'activité et met à jour la série de jours consécutifs.
    - jour déjà présent : série inchangée
    - veille présente : série + 1, sinon série = 1
    L'appelant commit.
    """
    progress = dict(user.progress or {})
    days = set(progress.get(ACTIVITY_DAYS_KEY) or [])
    key = day.isoformat()

    if key not in days:
        if previous_day(day).isoformat() in days:
            user.current_streak = int(user.current_streak or 0) + 1
        else:
            user.current_streak = 1
        user.longest_streak = max(int(user.longest_streak or 0), user.current_streak)
        days.add(key)

    # nouvel objet JSON, sinon SQLAlchemy ne voit pas la modification
    progress[ACTIVITY_DAYS_KEY] = sorted(days)
    user.progress = progress
    user.last_active = utcnow()

    return activity_snapshot(user)


def activity_snapshot(user: User) -> dict:
    return {
        "days": list((user.progress or {}).get(ACTIVITY_DAYS_KEY) or []),
        "currentStreak": int(user.current_streak or 0),
        "longestStreak": int(user.longest_streak or 0),
    }


def xp_snapshot(user: User) -> dict:
    total = int(user.total_xp or 0)
    return {"total": total, "level": level_from_xp(total)}
