from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


def _coerce_role(v) -> Role:
    # rôle inconnu venant du front -> traité comme un message utilisateur
    if isinstance(v, Role):
        return v
    v = str(v or "").strip().lower()
    return Role(v) if v in Role._value2member_map_ else Role.user


class ChatMessage(BaseModel):
    role: Role = Role.user
    content: str = ""

    @field_validator("role", mode="before")
    @classmethod
    def coerce_role(cls, v):
        return _coerce_role(v)

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, v):
        return "" if v is None else str(v)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    emotion: Optional[str] = Field(default=None, max_length=40)
    userId: Optional[str] = Field(default=None, description="Si fourni, l'échange est ajouté à l'historique")


class ChatResponse(BaseModel):
    content: str
    demoMode: bool = False


class ChatHistoryEntry(BaseModel):
    role: Role = Role.user
    content: str = Field(..., min_length=1, max_length=2000)
    timestamp: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def coerce_role(cls, v):
        return _coerce_role(v)


class ChatHistoryResponse(BaseModel):
    userId: str
    messages: List[ChatHistoryEntry]
