from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from sunny.core.deps import get_user_or_404
from sunny.db.database import get_db
from sunny.db.models import Note
from sunny.schemas.notes import NoteCreateIn, NoteOut, NoteType, NoteUpdateIn
from sunny.utils.dates import iso

router = APIRouter(prefix="/api/notes", tags=["notes"])


def note_out(n: Note) -> NoteOut:
    return NoteOut(
        id=n.id,
        userId=n.user_id,
        comment=n.comment,
        noteType=n.note_type,
        priority=n.priority,
        actionable=bool(n.actionable),
        relatedSkill=n.related_skill,
        relatedSessionId=n.related_session_id,
        timestamp=iso(n.timestamp),
    )


def note_or_404(db: Session, note_id: str) -> Note:
    n = db.execute(select(Note).where(Note.id == note_id)).scalar_one_or_none()
    if not n:
        raise HTTPException(404, detail="Note not found")
    return n


@router.post("", response_model=NoteOut, status_code=201)
def create_note(payload: NoteCreateIn, db: Session = Depends(get_db)):
    user = get_user_or_404(db, payload.userId)
    comment = payload.comment.strip()
    if not comment:
        raise HTTPException(400, detail="comment is required")

    n = Note(
        user_id=user.id,
        comment=comment,
        note_type=payload.noteType,
        priority=payload.priority,
        actionable=payload.actionable,
        related_skill=payload.relatedSkill,
        related_session_id=payload.relatedSessionId,
    )
    db.add(n)
    db.commit()
    db.refresh(n)
    return note_out(n)


@router.get("")
def list_notes(
    userId: str = Query(..., min_length=1),
    noteType: Optional[NoteType] = None,
    actionableOnly: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    limit = max(1, min(200, int(limit)))

    q = select(Note).where(Note.user_id == userId)
    if noteType:
        q = q.where(Note.note_type == noteType)
    if actionableOnly:
        # "à traiter" = actionnable ET priorité haute
        q = q.where(Note.actionable.is_(True), Note.priority == "high")

    rows = db.execute(q.order_by(Note.timestamp.desc(), Note.id.asc()).limit(limit)).scalars().all()
    return {"items": [note_out(n) for n in rows], "count": len(rows)}


@router.get("/{note_id}", response_model=NoteOut)
def get_note(note_id: str, db: Session = Depends(get_db)):
    return note_out(note_or_404(db, note_id))


@router.patch("/{note_id}", response_model=NoteOut)
def update_note(note_id: str, payload: NoteUpdateIn, db: Session = Depends(get_db)):
    n = note_or_404(db, note_id)

    if payload.comment is not None:
        comment = payload.comment.strip()
        if not comment:
            raise HTTPException(400, detail="comment cannot be empty")
        n.comment = comment
    if payload.noteType is not None:
        n.note_type = payload.noteType
    if payload.priority is not None:
        n.priority = payload.priority
    if payload.actionable is not None:
        n.actionable = payload.actionable
    if payload.relatedSkill is not None:
        n.related_skill = payload.relatedSkill or None

    db.commit()
    db.refresh(n)
    return note_out(n)
