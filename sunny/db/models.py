from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    String,
    DateTime,
    Integer,
    Float,
    Boolean,
    ForeignKey,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sunny.db.database import Base
from sunny.utils.dates import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # visual | auditory | kinesthetic | reading | logical
    learning_style: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # map libre {clé: valeur} (activity_days, préférences front, ...)
    progress: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    # [{"role": "user"|"assistant", "content": "...", "timestamp": "..."}]
    chat_history: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # XP & streak (jours consécutifs)
    total_xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_active: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # ============================================================
    # Relations
    # ============================================================
    quiz_sessions: Mapped[list["QuizSession"]] = relationship(
        "QuizSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    skills: Mapped[list["Skill"]] = relationship(
        "Skill",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    notes: Mapped[list["Note"]] = relationship(
        "Note",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# ============================================================
# QUIZ
# ============================================================

class QuizSession(Base):
    __tablename__ = "quiz_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    topic: Mapped[str] = mapped_column(String(200), nullable=False)

    # questions complètes (avec corrigés) ; jamais renvoyées telles quelles au client
    questions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    answers: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    total_questions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    questions_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    earned_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # adaptatif : beginner|easy|medium|hard|advanced
    current_difficulty: Mapped[str] = mapped_column(String(16), default="medium", nullable=False)
    correct_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wrong_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # [{"questionNumber": 3, "from": "medium", "to": "hard", "reason": "..."}]
    difficulty_adjustments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    concepts_mastered: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    concepts_to_review: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    mastery_before: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    mastery_after: Mapped[float | None] = mapped_column(Float, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="quiz_sessions")


class Skill(Base):
    """
    Performance par sujet (un enregistrement par user + domaine).
    Sert au tableau de bord et au niveau de difficulté de départ des quiz.
    """

    __tablename__ = "skills"
    __table_args__ = (UniqueConstraint("user_id", "domain", name="uq_skills_user_domain"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    domain: Mapped[str] = mapped_column(String(120), nullable=False)      # ex: "fractions"
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(64), default="general", nullable=False)

    mastery: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)  # 0..100
    total_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    correct_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_difficulty: Mapped[str] = mapped_column(String(16), default="medium", nullable=False)

    # missions : oubli estimé (0.05..0.50), style de réponse habituel, temps moyen
    decay_rate: Mapped[float] = mapped_column(Float, default=0.15, nullable=False)
    typical_answer_style: Mapped[str | None] = mapped_column(String(16), nullable=True)  # guess|skip|worked|rushed
    average_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)

    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="skills")


# ============================================================
# NOTES
# ============================================================

class Note(Base):
    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    comment: Mapped[str] = mapped_column(Text, nullable=False)
    note_type: Mapped[str] = mapped_column(String(16), default="observation", nullable=False)  # observation|milestone|concern
    priority: Mapped[str] = mapped_column(String(8), default="medium", nullable=False, index=True)  # low|medium|high
    actionable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    related_skill: Mapped[str | None] = mapped_column(String(120), nullable=True)
    related_session_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user: Mapped["User"] = relationship("User", back_populates="notes")


# ============================================================
# XP
# ============================================================

class XpEvent(Base):
    __tablename__ = "xp_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    source: Mapped[str] = mapped_column(String(32), nullable=False)      # "quiz" | "progress" | ...
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # idempotence / traçabilité
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    question_index: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)


# ============================================================
# MISSIONS
# ============================================================

class MissionSession(Base):
    """
    Mission ciblée sur la compétence la plus urgente (questions ouvertes notées par le LLM).
    """

    __tablename__ = "mission_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"), index=True, nullable=False)

    mission_type: Mapped[str] = mapped_column(String(120), nullable=False)  # domaine de la compétence
    sunny_goal: Mapped[str] = mapped_column(String(300), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)  # easy|medium|hard
    question_format: Mapped[str] = mapped_column(String(40), nullable=False)
    questions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)  # active|completed
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    mastery_before: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    mastery_after: Mapped[float | None] = mapped_column(Float, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class MissionAttempt(Base):
    __tablename__ = "mission_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mission_id: Mapped[str] = mapped_column(
        ForeignKey("mission_sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id", ondelete="CASCADE"), index=True, nullable=False)

    question_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    student_answer: Mapped[str] = mapped_column(Text, nullable=False)
    time_to_answer_seconds: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    correctness: Mapped[str] = mapped_column(String(16), nullable=False)  # correct|incorrect|partial
    reasoning_quality: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    answer_style: Mapped[str] = mapped_column(String(16), nullable=False)
    misunderstanding_label: Mapped[str | None] = mapped_column(String(200), nullable=True)
    confidence_level: Mapped[str] = mapped_column(String(8), nullable=False)
    ai_feedback: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
