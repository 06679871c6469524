from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sunny.core.deps import get_quiz_engine
from sunny.db.database import get_db
from sunny.models.quiz import (
    AnswerRequest,
    AnswerResponse,
    CreateQuizRequest,
    CreateQuizResponse,
    HintRequest,
    HintResponse,
)
from sunny.services.quiz_engine import QuizEngine

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


@router.post("/create", response_model=CreateQuizResponse)
def create_quiz(
    body: CreateQuizRequest,
    db: Session = Depends(get_db),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    return engine.create(db, body)


@router.post("/answer", response_model=AnswerResponse)
def answer_quiz(
    body: AnswerRequest,
    db: Session = Depends(get_db),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    return engine.answer(db, body)


@router.get("/session/{session_id}")
def quiz_session(
    session_id: str,
    userId: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    return engine.session_state(db, session_id, userId)


@router.get("/summary/{session_id}")
def quiz_summary(
    session_id: str,
    userId: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    return engine.summary(db, session_id, userId)


@router.post("/hint", response_model=HintResponse)
def quiz_hint(
    body: HintRequest,
    db: Session = Depends(get_db),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    return engine.hint(db, body)
