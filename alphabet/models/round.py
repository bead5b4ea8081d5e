from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..clock import utcnow


class Round(SQLModel, table=True):
    __tablename__ = "rounds"

    id: Optional[int] = Field(default=None, primary_key=True)
    round_number: int = Field(unique=True, index=True)
    name: str = Field(max_length=100)
    start_date: datetime
    end_date: datetime
    is_active: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
