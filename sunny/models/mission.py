from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

# Le LLM répond en snake_case, l'API en camelCase : les deux sont acceptés en entrée.

Correctness = Literal["correct", "incorrect", "partial"]
AnswerStyle = Literal["guess", "skip", "worked", "rushed"]
ConfidenceLevel = Literal["low", "medium", "high"]
MissionDifficulty = Literal["easy", "medium", "hard"]


class MissionQuestion(BaseModel):
    id: str = ""
    text: str = Field(..., min_length=1, max_length=1000)
    type: Literal["open_ended", "multiple_choice", "explanation"] = "explanation"
    expectedReasoning: str = Field(
        default="",
        validation_alias=AliasChoices("expectedReasoning", "expected_reasoning"),
    )
    hints: List[str] = Field(default_factory=list)


class MissionSkill(BaseModel):
    domain: str
    displayName: str
    category: str
    mastery: float
    decayRate: float
    daysSinceSeen: float
    urgencyScore: float


class MissionOut(BaseModel):
    id: str
    skill: MissionSkill
    sunnyGoal: str
    difficultyLevel: MissionDifficulty
    questionFormat: str
    questions: List[MissionQuestion]
    estimatedDurationMinutes: int


class NextMissionResponse(BaseModel):
    mission: MissionOut
    demoMode: bool = False


class GradeRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    userId: str = Field(..., min_length=1)
    questionId: Optional[str] = Field(default=None, max_length=36)
    questionText: str = Field(..., min_length=1, max_length=2000)
    studentAnswer: str = Field(..., min_length=1, max_length=2000)
    timeToAnswerSeconds: float = Field(default=0, ge=0)


class MissionEvaluation(BaseModel):
    correctness: Correctness
    reasoningQuality: int = Field(
        ..., ge=1, le=5, validation_alias=AliasChoices("reasoningQuality", "reasoning_quality")
    )
    answerStyle: AnswerStyle = Field(..., validation_alias=AliasChoices("answerStyle", "answer_style"))
    misunderstandingLabel: Optional[str] = Field(
        default=None,
        max_length=200,
        validation_alias=AliasChoices("misunderstandingLabel", "misunderstanding_label"),
    )
    confidenceLevel: ConfidenceLevel = Field(
        ..., validation_alias=AliasChoices("confidenceLevel", "confidence_level")
    )
    aiFeedback: str = Field(..., min_length=1, validation_alias=AliasChoices("aiFeedback", "ai_feedback"))

    @field_validator("misunderstandingLabel", mode="before")
    @classmethod
    def empty_label(cls, v):
        # "null" / "" renvoyés par le LLM = pas de confusion détectée
        if v is None or (isinstance(v, str) and v.strip().lower() in ("", "null", "none")):
            return None
        return v


class GradeResponse(MissionEvaluation):
    masteryDelta: int
    newMastery: float
    missionComplete: bool = False
