from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Column, Enum as SAEnum
from sqlmodel import SQLModel, Field, UniqueConstraint

from ..clock import utcnow


class PredictedOutcome(str, Enum):
    HOME_WIN = "home_win"
    AWAY_WIN = "away_win"
    DRAW = "draw"

    @classmethod
    def from_score(cls, home_score: int, away_score: int) -> "PredictedOutcome":
        if home_score > away_score:
            return cls.HOME_WIN
        if away_score > home_score:
            return cls.AWAY_WIN
        return cls.DRAW


class Prediction(SQLModel, table=True):
    __tablename__ = "predictions"
    __table_args__ = (UniqueConstraint("user_id", "match_id", name="unique_user_match"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    match_id: int = Field(foreign_key="matches.id", index=True)

    # Prediction
    predicted_outcome: PredictedOutcome = Field(
        sa_column=Column(
            SAEnum(
                PredictedOutcome,
                values_callable=lambda enum: [member.value for member in enum],
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
    )
    predicted_home_score: Optional[int] = Field(default=None)
    predicted_away_score: Optional[int] = Field(default=None)

    # Points (calculated once, when the match is settled)
    points_earned: int = Field(default=0)
    is_evaluated: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
