from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

LearningStyle = Literal["visual", "auditory", "kinesthetic", "reading", "logical"]


class SignupIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    learningStyle: Optional[LearningStyle] = None
    # changement de mot de passe : l'ancien est exigé
    password: Optional[str] = Field(default=None, min_length=6, max_length=256)
    currentPassword: Optional[str] = Field(default=None, max_length=256)


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    learningStyle: Optional[str] = None
    progress: Dict[str, Any] = Field(default_factory=dict)
    totalXp: int = 0
    level: int = 1
    currentStreak: int = 0
    longestStreak: int = 0
    lastActive: Optional[str] = None
    createdAt: Optional[str] = None
