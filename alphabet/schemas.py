"""Request bodies. The browser client sends camelCase keys; snake_case is accepted too."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models.match import MatchStatus
from .models.prediction import PredictedOutcome


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class PredictionCreate(CamelModel):
    match_id: int
    predicted_outcome: PredictedOutcome
    predicted_home_score: Optional[int] = Field(default=None, ge=0)
    predicted_away_score: Optional[int] = Field(default=None, ge=0)


class TeamCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    short_name: str = Field(min_length=1, max_length=10)
    logo_url: Optional[str] = None


class RoundCreate(CamelModel):
    round_number: int = Field(ge=1)
    name: str = Field(min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime


class MatchCreate(CamelModel):
    round_id: int
    home_team_id: int
    away_team_id: int
    match_date: datetime
    prediction_deadline: Optional[datetime] = None


class MatchResultUpdate(CamelModel):
    home_score: Optional[int] = Field(default=None, ge=0)
    away_score: Optional[int] = Field(default=None, ge=0)
    status: MatchStatus = MatchStatus.FINISHED
