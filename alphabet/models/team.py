from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..clock import utcnow


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=100)
    short_name: str = Field(max_length=10)  # e.g. ARS, MCI
    logo_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
