from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Column, Enum as SAEnum
from sqlmodel import SQLModel, Field

from ..clock import to_utc, utcnow
from ..errors import BadRequestError, IllegalTransitionError


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    POSTPONED = "postponed"

    @property
    def has_score(self) -> bool:
        return self in (MatchStatus.LIVE, MatchStatus.FINISHED)


# Finished is terminal; live may re-enter itself to update the running score
ALLOWED_TRANSITIONS = {
    MatchStatus.SCHEDULED: {MatchStatus.LIVE, MatchStatus.FINISHED, MatchStatus.POSTPONED},
    MatchStatus.LIVE: {MatchStatus.LIVE, MatchStatus.FINISHED, MatchStatus.POSTPONED},
    MatchStatus.POSTPONED: {MatchStatus.SCHEDULED, MatchStatus.LIVE, MatchStatus.FINISHED},
    MatchStatus.FINISHED: set(),
}


class Match(SQLModel, table=True):
    __tablename__ = "matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    round_id: int = Field(foreign_key="rounds.id", index=True)
    home_team_id: int = Field(foreign_key="teams.id")
    away_team_id: int = Field(foreign_key="teams.id")

    match_date: datetime = Field(index=True)  # kickoff
    prediction_deadline: datetime  # <= match_date

    status: MatchStatus = Field(
        default=MatchStatus.SCHEDULED,
        sa_column=Column(
            SAEnum(
                MatchStatus,
                values_callable=lambda enum: [member.value for member in enum],
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
    )

    # Actual result (filled by admin; only set while live or finished)
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_open_for_predictions(self, now: datetime) -> bool:
        return self.status == MatchStatus.SCHEDULED and to_utc(now) < to_utc(self.prediction_deadline)

    def apply_result(
        self,
        status: MatchStatus,
        home_score: Optional[int] = None,
        away_score: Optional[int] = None
    ) -> None:
        """Move the match to `status`, enforcing legal transitions and the score invariant."""
        current = MatchStatus(self.status)
        if status not in ALLOWED_TRANSITIONS[current]:
            raise IllegalTransitionError(
                f"Cannot change match status from {current.value} to {status.value}"
            )

        if status.has_score:
            if home_score is None or away_score is None:
                raise BadRequestError("Home and away scores are required for a live or finished match")
            self.home_score = home_score
            self.away_score = away_score
        else:
            self.home_score = None
            self.away_score = None

        self.status = status
        self.updated_at = utcnow()
