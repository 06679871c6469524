from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ActivityStep(BaseModel):
    prompt: str = Field(..., min_length=1)
    choices: Optional[List[str]] = None
    correctAnswer: Optional[str] = None
    hint: Optional[str] = None


class ActivityPayload(BaseModel):
    type: Literal["quiz", "story", "puzzle", "chat"] = "quiz"
    topic: str
    goal: str
    steps: List[ActivityStep] = Field(..., min_length=1, max_length=6)


class StartSessionRequest(BaseModel):
    ageBracket: str = Field(..., max_length=40)
    goal: str = Field(..., max_length=200)

    @field_validator("ageBracket", "goal", mode="after")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class StartSessionResponse(BaseModel):
    sessionId: str
    introMessage: str
    activity: ActivityPayload
    goal: str
    ageBracket: str


class ContinueSessionRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    ageBracket: str = Field(..., max_length=40)
    goal: str = Field(..., max_length=200)
    previousAnswer: Optional[str] = Field(default=None, max_length=500)
    activity: ActivityPayload

    @field_validator("ageBracket", "goal", mode="after")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class ContinueSessionResponse(BaseModel):
    feedbackMessage: str
    activity: ActivityPayload
    previousCorrect: Optional[bool] = None
