from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

ProgressOp = Literal["append_activity", "add_xp", "set"]


class ProgressIn(BaseModel):
    userId: str = Field(min_length=1)
    op: Optional[ProgressOp] = None  # None == "set"
    key: Optional[str] = Field(default=None, max_length=80)
    value: Any = None

    # append_activity
    isoDate: Optional[str] = Field(default=None, description="Jour ISO (YYYY-MM-DD), aujourd'hui par défaut")

    # add_xp
    amount: Optional[int] = Field(default=None, ge=0, le=10_000)
    reason: Optional[str] = Field(default=None, max_length=200)
