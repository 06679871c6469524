import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sunny.core.security import hash_password, password_bytes_ok
from sunny.db.database import get_db
from sunny.db.models import User
from sunny.routers.users import user_out
from sunny.schemas.users import SignupIn, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

EMAIL_TAKEN = "Email already registered."


def email_taken(db: Session, email: str) -> bool:
    return db.execute(select(User.id).where(User.email == email)).first() is not None


@router.post("/signup", response_model=UserOut, status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    # 1) Limite bcrypt (anti-500)
    if not password_bytes_ok(payload.password):
        raise HTTPException(
            status_code=400,
            detail="Password too long (bcrypt is limited to 72 bytes).",
        )

    # 2) Unicité email
    if email_taken(db, payload.email):
        raise HTTPException(status_code=409, detail=EMAIL_TAKEN)

    # 3) Création user
    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        progress={},
        chat_history=[],
        total_xp=0,
        current_streak=0,
        longest_streak=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # inscription concurrente avec le même email : la contrainte unique tranche
        db.rollback()
        raise HTTPException(status_code=409, detail=EMAIL_TAKEN)
    db.refresh(user)

    logger.info("User %s signed up", user.id)
    return user_out(user)
