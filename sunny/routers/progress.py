from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from sunny.core.deps import get_user_or_404
from sunny.db.database import get_db
from sunny.schemas.progress import ProgressIn
from sunny.services.progress import (
    ACTIVITY_DAYS_KEY,
    activity_snapshot,
    append_activity,
    apply_xp,
    xp_snapshot,
)
from sunny.utils.dates import parse_iso_day, utcnow

router = APIRouter(prefix="/api/progress", tags=["progress"])

# clés calculées, non modifiables via op="set"
RESERVED_KEYS = {ACTIVITY_DAYS_KEY, "total_xp", "level"}


@router.get("")
def read_progress(
    userId: str = Query(..., min_length=1),
    key: Optional[str] = None,
    db: Session = Depends(get_db),
):
    user = get_user_or_404(db, userId)

    if key is None:
        return {"userId": user.id, "progress": dict(user.progress or {}), "xp": xp_snapshot(user)}
    if key == ACTIVITY_DAYS_KEY:
        return {"key": key, "value": activity_snapshot(user)}
    if key == "total_xp":
        return {"key": key, "value": xp_snapshot(user)["total"]}
    if key == "level":
        return {"key": key, "value": xp_snapshot(user)["level"]}
    return {"key": key, "value": (user.progress or {}).get(key)}


@router.post("")
def write_progress(payload: ProgressIn, db: Session = Depends(get_db)):
    user = get_user_or_404(db, payload.userId)

    if payload.op == "append_activity":
        try:
            day = parse_iso_day(payload.isoDate) if payload.isoDate else utcnow().date()
        except ValueError:
            raise HTTPException(status_code=400, detail="isoDate must be an ISO date (YYYY-MM-DD).")
        snapshot = append_activity(user, day)
        db.commit()
        return {"ok": True, "key": ACTIVITY_DAYS_KEY, "value": snapshot}

    if payload.op == "add_xp":
        if payload.amount is None:
            raise HTTPException(status_code=400, detail="amount is required for add_xp")
        apply_xp(
            db,
            user_id=user.id,
            amount=payload.amount,
            source="progress",
            reason=payload.reason,
        )
        return {"ok": True, **xp_snapshot(user)}

    # op absent ou "set" : progress[key] = value
    key = (payload.key or "").strip()
    if not key:
        raise HTTPException(status_code=400, detail="key is required")
    if key in RESERVED_KEYS:
        raise HTTPException(status_code=400, detail=f"{key} is managed by the server")

    progress = dict(user.progress or {})
    progress[key] = payload.value
    user.progress = progress
    db.commit()
    return {"ok": True, "key": key, "value": payload.value}
