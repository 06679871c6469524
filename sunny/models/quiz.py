from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Difficulty(str, Enum):
    beginner = "beginner"
    easy = "easy"
    medium = "medium"
    hard = "hard"
    advanced = "advanced"


Confidence = Literal["low", "medium", "high"]


class Hint(BaseModel):
    id: str
    level: int
    text: str
    type: str  # nudge | guidance | reveal


class Question(BaseModel):
    """
    Question telle que renvoyée au client : aucun corrigé dans `content`.
    """

    id: str
    type: str
    topic: str
    difficulty: Difficulty
    bloomsLevel: str = "understand"
    content: Dict[str, Any] = Field(default_factory=dict)
    points: int = 10
    estimatedTime: int = 30
    hintCount: int = 0
    tags: List[str] = Field(default_factory=list)


class CreateQuizRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1, max_length=200)
    questionCount: int = Field(default=5, ge=1, le=20, description="Nombre de questions")


class QuizProgress(BaseModel):
    questionsCompleted: int
    totalQuestions: int
    correctAnswers: int
    earnedPoints: int
    totalPoints: int


class CreateQuizResponse(BaseModel):
    success: bool = True
    sessionId: str
    topic: str
    difficulty: Difficulty
    bloomsLevel: str
    totalQuestions: int
    questions: List[Question]
    demoMode: bool = False


class AnswerRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    sessionId: str = Field(..., min_length=1)
    questionIndex: int = Field(..., ge=0)
    answer: Any = Field(..., description="Index, liste, booléen, nombre ou texte selon le type")
    timeSpent: float = Field(default=0, ge=0, description="Temps passé (ms)")
    hintsUsed: int = Field(default=0, ge=0)
    confidence: Optional[Confidence] = None


class Evaluation(BaseModel):
    correct: bool
    feedback: str
    explanation: str
    encouragement: str
    nextSteps: List[str] = Field(default_factory=list)


class XpAward(BaseModel):
    awarded: int
    total: int
    level: int


class AnswerResponse(BaseModel):
    success: bool = True
    evaluation: Evaluation
    nextQuestion: Optional[Question] = None
    sessionComplete: bool
    difficultyAdjusted: bool
    currentDifficulty: Difficulty
    currentStreak: int
    progress: QuizProgress
    xp: XpAward


class HintRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    sessionId: str = Field(..., min_length=1)
    questionIndex: int = Field(..., ge=0)
    attemptNumber: int = Field(..., ge=1)
    confidence: Optional[Confidence] = None


class HintResponse(BaseModel):
    success: bool = True
    hint: Hint
    hasMoreHints: bool


# ---------- questions générées par le LLM ----------

QuestionType = Literal[
    "multiple-choice",
    "multiple-select",
    "true-false",
    "fill-in-blank",
    "number-input",
    "short-answer",
    "ordering",
]


class MultipleChoiceContent(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correctIndex: int

    @model_validator(mode="after")
    def check_index(self):
        if not 0 <= self.correctIndex < len(self.options):
            raise ValueError("correctIndex out of range")
        return self


class MultipleSelectContent(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correctIndices: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_indices(self):
        if any(not 0 <= i < len(self.options) for i in self.correctIndices):
            raise ValueError("correctIndices out of range")
        return self


class TrueFalseContent(BaseModel):
    statement: str = Field(..., min_length=1)
    correct: bool
    explanation: Optional[str] = None


class BlankSpec(BaseModel):
    position: int = Field(default=0, ge=0)
    correctAnswers: List[str] = Field(..., min_length=1)
    caseSensitive: bool = False


class FillInBlankContent(BaseModel):
    text: str = Field(..., min_length=1)
    blanks: List[BlankSpec] = Field(..., min_length=1)


class NumberInputContent(BaseModel):
    question: str = Field(..., min_length=1)
    correctAnswer: float
    tolerance: float = Field(default=0, ge=0)
    unit: str = ""


class ShortAnswerContent(BaseModel):
    question: str = Field(..., min_length=1)
    correctAnswer: str = Field(..., min_length=1)
    acceptableAnswers: List[str] = Field(default_factory=list)


class OrderingContent(BaseModel):
    question: str = Field(..., min_length=1)
    items: List[str] = Field(..., min_length=2)
    correctOrder: List[str] = Field(..., min_length=2)

    @model_validator(mode="after")
    def check_order(self):
        if sorted(self.items) != sorted(self.correctOrder):
            raise ValueError("correctOrder must reorder items")
        return self


CONTENT_MODELS = {
    "multiple-choice": MultipleChoiceContent,
    "multiple-select": MultipleSelectContent,
    "true-false": TrueFalseContent,
    "fill-in-blank": FillInBlankContent,
    "number-input": NumberInputContent,
    "short-answer": ShortAnswerContent,
    "ordering": OrderingContent,
}


class GeneratedQuestion(BaseModel):
    """
    Question brute proposée par le LLM.
    `content` est validé selon le type ; un élément invalide est écarté par le moteur.
    """

    type: QuestionType
    subtopic: Optional[str] = Field(default=None, max_length=200)
    content: Dict[str, Any]
    difficulty: Optional[Difficulty] = None
    bloomsLevel: Optional[str] = None
    points: int = Field(default=10, ge=1, le=100)
    estimatedTime: int = Field(default=30, ge=5, le=600)
    tags: List[str] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def lower_difficulty(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_content(self):
        model = CONTENT_MODELS[self.type]
        self.content = model.model_validate(self.content).model_dump(exclude_none=True)
        return self
