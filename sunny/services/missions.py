import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from sunny.db.models import MissionAttempt, MissionSession, Note, Skill, User
from sunny.models.mission import (
    GradeRequest,
    GradeResponse,
    MissionEvaluation,
    MissionOut,
    MissionQuestion,
    MissionSkill,
    NextMissionResponse,
)
from sunny.services.llm import LLMService, get_llm
from sunny.utils.dates import as_utc, utcnow

logger = logging.getLogger(__name__)

MIN_DECAY_RATE = 0.05
MAX_DECAY_RATE = 0.50

QUESTIONS_PER_DIFFICULTY = {"easy": 5, "medium": 6, "hard": 7}
MINUTES_PER_QUESTION = 2
SLOW_ANSWER_SECONDS = 30

# compétences de départ d'un nouvel élève (maths, cycle 3)
DEFAULT_SKILLS = [
    {"domain": "fractions_comparison", "category": "math", "display_name": "Comparing Fractions", "decay_rate": 0.15},
    {"domain": "fractions_addition", "category": "math", "display_name": "Adding Fractions", "decay_rate": 0.20},
    {"domain": "multiplication_facts", "category": "math", "display_name": "Multiplication Facts", "decay_rate": 0.10},
    {"domain": "word_problems_multi_step", "category": "math", "display_name": "Multi-Step Word Problems", "decay_rate": 0.25},
    {"domain": "decimals_place_value", "category": "math", "display_name": "Decimal Place Value", "decay_rate": 0.18},
]

_FORMAT_BY_STYLE = {
    "visual": "visual_word_problems",
    "kinesthetic": "hands_on_scenarios",
    "logical": "number_patterns",
}


# ---------- règles pures ----------

def days_since(last_seen: Optional[datetime], now: Optional[datetime] = None) -> float:
    if last_seen is None:
        return 0.0
    delta = as_utc(now or utcnow()) - as_utc(last_seen)
    return max(0.0, delta.total_seconds() / 86400)


def urgency_score(mastery: float, decay_rate: float, days_since_seen: float) -> float:
    """
    (100 - maîtrise) * oubli * (1 + jours/7) : faible maîtrise, oubli rapide
    et compétence pas revue depuis longtemps passent en premier.
    """
    return (100 - float(mastery or 0)) * float(decay_rate or 0) * (1 + days_since_seen / 7)


def mission_difficulty(mastery: float) -> str:
    mastery = float(mastery or 0)
    if mastery < 30:
        return "easy"
    if mastery > 70:
        return "hard"
    return "medium"


def select_question_format(learning_style: Optional[str], typical_answer_style: Optional[str]) -> str:
    # un élève qui devine ou bâcle doit expliquer
    if typical_answer_style in ("guess", "rushed"):
        return "explanation_required"
    return _FORMAT_BY_STYLE.get(learning_style or "", "mixed_format")


def sunny_goal(display_name: str, difficulty: str) -> str:
    action = {"easy": "learning", "medium": "practicing"}.get(difficulty, "mastering")
    return f"We are {action} {display_name.lower()}. Let's patch this skill."


def mastery_delta(correctness: str, reasoning_quality: int, answer_style: str, confidence_level: str) -> int:
    # ni les réponses sautées ni les purs hasards ne comptent
    if answer_style == "skip" or reasoning_quality == 1:
        return 0

    if correctness == "correct":
        return 3 if reasoning_quality >= 4 else 2
    if correctness == "partial":
        return 0 if reasoning_quality >= 3 else -1

    if confidence_level == "high" and reasoning_quality <= 2:
        return -3  # confiance + erreur = idée fausse installée
    if reasoning_quality >= 3:
        return -1
    return -2


def update_decay_rate(current: float, correctness: str, reasoning_quality: int) -> float:
    current = float(current)
    if correctness == "correct" and reasoning_quality >= 4:
        return round(max(MIN_DECAY_RATE, current - 0.02), 4)
    if correctness == "incorrect" and reasoning_quality <= 2:
        return round(min(MAX_DECAY_RATE, current + 0.01), 4)
    return current


def should_create_note(evaluation: MissionEvaluation, time_seconds: float, average_time_seconds: Optional[float]) -> bool:
    if evaluation.misunderstandingLabel:
        return True
    if average_time_seconds:
        if abs(time_seconds - average_time_seconds) > average_time_seconds * 0.5:
            return True
    return evaluation.correctness == "incorrect" and evaluation.confidenceLevel == "high"


def note_for(evaluation: MissionEvaluation, time_seconds: float) -> Optional[Tuple[str, str, str]]:
    """
    (commentaire, type, priorité) de la note de Sunny, ou None si rien à signaler.
    """
    if evaluation.misunderstandingLabel:
        return (
            f"Pattern detected: {evaluation.misunderstandingLabel}. "
            "We should reteach this concept with a different approach.",
            "concern",
            "high",
        )
    if time_seconds > SLOW_ANSWER_SECONDS:
        return (
            f"This question took {time_seconds:.0f} seconds, much longer than usual. "
            "Something here is confusing. Let's slow down and fix only that part.",
            "observation",
            "medium",
        )
    if evaluation.correctness == "incorrect" and evaluation.confidenceLevel == "high":
        return (
            "High confidence but wrong answer. This suggests a misconception, "
            "not just a mistake. Needs targeted correction.",
            "concern",
            "high",
        )
    return None


def fallback_evaluation(answer: str, time_seconds: float) -> MissionEvaluation:
    text = (answer or "").strip().lower()
    if text in ("skip", "idk") or len(text) < 3:
        style = "skip"
    elif time_seconds < 5:
        style = "rushed"
    else:
        style = "worked"
    return MissionEvaluation(
        correctness="partial",
        reasoningQuality=3,
        answerStyle=style,
        confidenceLevel="medium",
        aiFeedback="Keep working on this. Show your thinking step by step.",
    )


def fallback_questions(display_name: str) -> List[MissionQuestion]:
    return [
        MissionQuestion(
            id="q1",
            text=f"Let's work on {display_name}. Explain what you already know about this topic.",
            expectedReasoning="Student demonstrates prior knowledge",
            hints=["Think about what you remember", "Any examples you can give?"],
        ),
        MissionQuestion(
            id="q2",
            text="Here's a practice problem. Show your work and explain your thinking.",
            expectedReasoning="Student shows problem-solving process",
        ),
    ]


class MissionService:
    """
    Missions de Sunny.
    - next : compétence la plus urgente, questions ouvertes (LLM, sinon génériques).
    - grade : évaluation LLM (sinon neutre), maîtrise +/- delta, oubli ajusté, note si besoin.
    """

    def __init__(self, llm: Optional[LLMService] = None):
        self._llm = llm

    @property
    def llm(self) -> LLMService:
        return self._llm or get_llm()

    # ---------- public API ----------

    def next_mission(self, db: Session, user_id: str) -> NextMissionResponse:
        user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if not user:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")

        skills = db.execute(select(Skill).where(Skill.user_id == user.id)).scalars().all()
        if not skills:
            skills = self._init_default_skills(db, user.id)

        now = utcnow()
        ranked = sorted(
            (
                (urgency_score(s.mastery, s.decay_rate, days_since(s.last_seen, now)), s)
                for s in skills
            ),
            key=lambda pair: (-pair[0], float(pair[1].mastery or 0), pair[1].id),
        )
        urgency, skill = ranked[0]
        mastery = float(skill.mastery or 0)

        difficulty = mission_difficulty(mastery)
        question_format = select_question_format(user.learning_style, skill.typical_answer_style)
        questions = self._generate_questions(skill, difficulty, question_format, user.name)
        goal = sunny_goal(skill.display_name, difficulty)

        mission = MissionSession(
            user_id=user.id,
            skill_id=skill.id,
            mission_type=skill.domain,
            sunny_goal=goal,
            difficulty=difficulty,
            question_format=question_format,
            questions=[q.model_dump() for q in questions],
            mastery_before=mastery,
        )
        db.add(mission)
        db.commit()
        db.refresh(mission)

        logger.info("Mission %s for user %s on %s (urgency %.1f)", mission.id, user.id, skill.domain, urgency)
        return NextMissionResponse(
            mission=MissionOut(
                id=mission.id,
                skill=MissionSkill(
                    domain=skill.domain,
                    displayName=skill.display_name,
                    category=skill.category,
                    mastery=mastery,
                    decayRate=float(skill.decay_rate),
                    daysSinceSeen=round(days_since(skill.last_seen, now), 2),
                    urgencyScore=round(urgency, 2),
                ),
                sunnyGoal=goal,
                difficultyLevel=difficulty,
                questionFormat=question_format,
                questions=questions,
                estimatedDurationMinutes=len(questions) * MINUTES_PER_QUESTION,
            ),
            demoMode=not self.llm.is_available(),
        )

    def grade(self, db: Session, req: GradeRequest) -> GradeResponse:
        answer = req.studentAnswer.strip()
        question_text = req.questionText.strip()
        if not answer or not question_text:
            raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="questionText and studentAnswer are required")

        mission = db.execute(
            select(MissionSession).where(MissionSession.id == req.sessionId, MissionSession.user_id == req.userId)
        ).scalar_one_or_none()
        if not mission:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Mission not found")
        skill = db.get(Skill, mission.skill_id)

        time_seconds = float(req.timeToAnswerSeconds)
        evaluation = self._evaluate(question_text, answer, time_seconds, skill.display_name)
        correct = evaluation.correctness == "correct"

        db.add(
            MissionAttempt(
                mission_id=mission.id,
                skill_id=skill.id,
                question_id=req.questionId,
                question_text=question_text,
                student_answer=answer,
                time_to_answer_seconds=time_seconds,
                correctness=evaluation.correctness,
                reasoning_quality=evaluation.reasoningQuality,
                answer_style=evaluation.answerStyle,
                misunderstanding_label=evaluation.misunderstandingLabel,
                confidence_level=evaluation.confidenceLevel,
                ai_feedback=evaluation.aiFeedback,
            )
        )

        # --- compétence ---
        delta = mastery_delta(
            evaluation.correctness,
            evaluation.reasoningQuality,
            evaluation.answerStyle,
            evaluation.confidenceLevel,
        )
        new_mastery = round(max(0.0, min(100.0, float(skill.mastery or 0) + delta)), 1)
        previous_avg = skill.average_time_seconds
        attempts = int(skill.total_attempts or 0)

        skill.mastery = new_mastery
        skill.last_seen = utcnow()
        skill.total_attempts = attempts + 1
        skill.correct_attempts = int(skill.correct_attempts or 0) + (1 if correct else 0)
        skill.typical_answer_style = evaluation.answerStyle
        skill.decay_rate = update_decay_rate(skill.decay_rate, evaluation.correctness, evaluation.reasoningQuality)
        if previous_avg is None:
            skill.average_time_seconds = time_seconds
        else:
            skill.average_time_seconds = (previous_avg * attempts + time_seconds) / (attempts + 1)

        # --- mission ---
        mission.questions_attempted += 1
        mission.questions_correct += 1 if correct else 0
        complete = mission.questions_attempted >= len(mission.questions or [])
        if complete and mission.status != "completed":
            mission.status = "completed"
            mission.completed_at = utcnow()
            mission.mastery_after = new_mastery

        # --- note de Sunny ---
        if should_create_note(evaluation, time_seconds, previous_avg):
            note = note_for(evaluation, time_seconds)
            if note:
                comment, note_type, priority = note
                db.add(
                    Note(
                        user_id=mission.user_id,
                        comment=comment,
                        note_type=note_type,
                        priority=priority,
                        actionable=priority == "high",
                        related_skill=skill.domain,
                        related_session_id=mission.id,
                    )
                )

        db.commit()
        logger.info("Mission %s graded: %s (delta %+d, mastery %.1f)", mission.id, evaluation.correctness, delta, new_mastery)

        return GradeResponse(
            **evaluation.model_dump(),
            masteryDelta=delta,
            newMastery=new_mastery,
            missionComplete=complete,
        )

    # ---------- internals ----------

    def _init_default_skills(self, db: Session, user_id: str) -> List[Skill]:
        skills = [Skill(user_id=user_id, mastery=0.0, **spec) for spec in DEFAULT_SKILLS]
        db.add_all(skills)
        db.flush()
        logger.info("Default skills created for user %s", user_id)
        return skills

    def _generate_questions(self, skill: Skill, difficulty: str, question_format: str, student_name: str) -> List[MissionQuestion]:
        if not self.llm.is_available():
            return fallback_questions(skill.display_name)

        count = QUESTIONS_PER_DIFFICULTY[difficulty]
        prompt = (
            f"You are Sunny, a patient math tutor. Generate {count} questions for {student_name}.\n"
            f"TARGET SKILL: {skill.display_name}\nDIFFICULTY: {difficulty}\nFORMAT: {question_format}\n"
            "Questions must require an explanation, not just an answer. Use real-world contexts "
            "(food, games, money, sports) and build from simple to complex.\n"
            'Return a JSON object {"questions": [{"text": "...", "type": "explanation", '
            '"expected_reasoning": "...", "hints": ["..."]}]}'
        )
        try:
            data = self.llm.complete_json([{"role": "system", "content": prompt}], max_tokens=1500)
            items = data.get("questions") if isinstance(data, dict) else data
            questions = []
            for it in items if isinstance(items, list) else []:
                try:
                    questions.append(MissionQuestion.model_validate(it))
                except ValidationError as e:
                    logger.warning("Mission question dropped (%d validation errors)", e.error_count())
        except Exception as e:
            logger.warning("Mission question generation failed: %s. Fallback questions.", e)
            return fallback_questions(skill.display_name)

        if not questions:
            return fallback_questions(skill.display_name)
        for i, q in enumerate(questions[:count], start=1):
            q.id = f"q{i}"
        return questions[:count]

    def _evaluate(self, question_text: str, answer: str, time_seconds: float, skill_name: str) -> MissionEvaluation:
        if not self.llm.is_available():
            return fallback_evaluation(answer, time_seconds)

        prompt = (
            "You are Sunny, evaluating a student's math answer. Be honest but kind.\n"
            f"QUESTION: {question_text}\nSTUDENT ANSWER: {answer}\n"
            f"TIME TAKEN: {time_seconds:.0f} seconds\nSKILL: {skill_name}\n"
            "Return ONLY JSON: "
            '{"correctness": "correct"|"incorrect"|"partial", "reasoning_quality": 1-5, '
            '"answer_style": "guess"|"skip"|"worked"|"rushed", '
            '"misunderstanding_label": "specific misconception or null", '
            '"confidence_level": "low"|"medium"|"high", '
            '"ai_feedback": "2-3 sentences about the work, not the student"}\n'
            "reasoning_quality: 1 pure guess, 2 confused, 3 partial understanding, 4 solid, 5 expert."
        )
        try:
            data = self.llm.complete_json([{"role": "system", "content": prompt}], max_tokens=400, temperature=0.3)
            return MissionEvaluation.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid mission evaluation from LLM (%d errors). Fallback evaluation.", e.error_count())
        except Exception as e:
            logger.warning("Mission evaluation failed: %s. Fallback evaluation.", e)
        return fallback_evaluation(answer, time_seconds)
