from typing import Literal, Optional

from pydantic import BaseModel, Field

NoteType = Literal["observation", "milestone", "concern"]
NotePriority = Literal["low", "medium", "high"]


class NoteCreateIn(BaseModel):
    userId: str = Field(min_length=1)
    comment: str = Field(min_length=1, max_length=4000)
    noteType: NoteType = "observation"
    priority: NotePriority = "medium"
    actionable: bool = False
    relatedSkill: Optional[str] = Field(default=None, max_length=120)
    relatedSessionId: Optional[str] = Field(default=None, max_length=36)


class NoteUpdateIn(BaseModel):
    comment: Optional[str] = Field(default=None, min_length=1, max_length=4000)
    noteType: Optional[NoteType] = None
    priority: Optional[NotePriority] = None
    actionable: Optional[bool] = None
    relatedSkill: Optional[str] = Field(default=None, max_length=120)


class NoteOut(BaseModel):
    id: str
    userId: str
    comment: str
    noteType: str
    priority: str
    actionable: bool
    relatedSkill: Optional[str] = None
    relatedSessionId: Optional[str] = None
    timestamp: str
