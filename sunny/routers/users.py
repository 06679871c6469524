from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sunny.core.deps import get_user_or_404
from sunny.core.security import hash_password, password_bytes_ok, verify_password
from sunny.db.database import get_db
from sunny.db.models import User
from sunny.models.chat import ChatHistoryEntry, ChatHistoryResponse
from sunny.schemas.users import UserOut, UserUpdateIn
from sunny.services.leveling import level_from_xp
from sunny.utils.dates import iso, utcnow

router = APIRouter(prefix="/api/users", tags=["users"])

MAX_CHAT_HISTORY = 100


def user_out(u: User) -> UserOut:
    # jamais de password_hash côté client
    return UserOut(
        id=u.id,
        name=u.name,
        email=u.email,
        learningStyle=u.learning_style,
        progress=dict(u.progress or {}),
        totalXp=int(u.total_xp or 0),
        level=level_from_xp(u.total_xp or 0),
        currentStreak=int(u.current_streak or 0),
        longestStreak=int(u.longest_streak or 0),
        lastActive=iso(u.last_active),
        createdAt=iso(u.created_at),
    )


def append_chat_history(user: User, entries: list) -> None:
    # nouvelle liste (JSON), bornée aux 100 derniers messages
    history = list(user.chat_history or []) + entries
    user.chat_history = history[-MAX_CHAT_HISTORY:]


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return user_out(get_user_or_404(db, user_id))


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdateIn, db: Session = Depends(get_db)):
    user = get_user_or_404(db, user_id)

    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        user.name = name

    if payload.learningStyle is not None:
        user.learning_style = payload.learningStyle

    if payload.password is not None:
        if not password_bytes_ok(payload.password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password too long (bcrypt is limited to 72 bytes).",
            )
        if not payload.currentPassword or not verify_password(payload.currentPassword, user.password_hash):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Current password is incorrect.")
        user.password_hash = hash_password(payload.password)

    db.commit()
    db.refresh(user)
    return user_out(user)


@router.get("/{user_id}/chat", response_model=ChatHistoryResponse)
def get_chat_history(user_id: str, db: Session = Depends(get_db)):
    user = get_user_or_404(db, user_id)
    return ChatHistoryResponse(userId=user.id, messages=list(user.chat_history or []))


@router.post("/{user_id}/chat", response_model=ChatHistoryResponse)
def add_chat_message(user_id: str, payload: ChatHistoryEntry, db: Session = Depends(get_db)):
    user = get_user_or_404(db, user_id)
    entry = {
        "role": payload.role.value,
        "content": payload.content,
        "timestamp": payload.timestamp or iso(utcnow()),
    }
    append_chat_history(user, [entry])
    db.commit()
    db.refresh(user)
    return ChatHistoryResponse(userId=user.id, messages=list(user.chat_history or []))
