import uuid

from fastapi import APIRouter, Depends, HTTPException

from sunny.core.deps import get_activity_planner
from sunny.models.activity import (
    ContinueSessionRequest,
    ContinueSessionResponse,
    StartSessionRequest,
    StartSessionResponse,
)
from sunny.services.activity_planner import SAFE_FALLBACK_GOAL, ActivityPlanner, determine_correctness
from sunny.utils.text_utils import check_safety

router = APIRouter(prefix="/api/session", tags=["session"])

FEEDBACK_CORRECT = "Nice work, let's go a little harder! 🌟"
FEEDBACK_WRONG = "That's okay, let's practice with another example together. 💪"
FEEDBACK_NEUTRAL = "Let's keep going!"


@router.post("/start", response_model=StartSessionResponse)
def start_session(body: StartSessionRequest, planner: ActivityPlanner = Depends(get_activity_planner)):
    if not body.ageBracket or not body.goal:
        raise HTTPException(status_code=400, detail="ageBracket and goal are required")

    goal = body.goal
    intro_override = None
    safety = check_safety(goal)
    if not safety.safe:
        goal = SAFE_FALLBACK_GOAL
        intro_override = safety.replacement_message

    plan = planner.plan_next(body.ageBracket, goal)
    intro = plan.intro_message
    if intro_override:
        intro = f"{intro_override} {intro}".strip()

    return StartSessionResponse(
        sessionId=str(uuid.uuid4()),
        introMessage=intro,
        activity=plan.activity,
        goal=goal,
        ageBracket=body.ageBracket,
    )


@router.post("/continue", response_model=ContinueSessionResponse)
def continue_session(body: ContinueSessionRequest, planner: ActivityPlanner = Depends(get_activity_planner)):
    if not body.ageBracket or not body.goal:
        raise HTTPException(status_code=400, detail="sessionId, ageBracket, goal, and activity are required")

    safety = check_safety(body.previousAnswer or "")
    if not safety.safe:
        plan = planner.plan_next(body.ageBracket, SAFE_FALLBACK_GOAL)
        return ContinueSessionResponse(
            feedbackMessage=safety.replacement_message,
            activity=plan.activity,
            previousCorrect=False,
        )

    was_correct = determine_correctness(body.activity, body.previousAnswer)
    plan = planner.plan_next(body.ageBracket, body.goal, previous_correct=was_correct)

    if was_correct is True:
        feedback = FEEDBACK_CORRECT
    elif was_correct is False:
        feedback = FEEDBACK_WRONG
    else:
        feedback = FEEDBACK_NEUTRAL

    return ContinueSessionResponse(
        feedbackMessage=feedback,
        activity=plan.activity,
        previousCorrect=was_correct,
    )
