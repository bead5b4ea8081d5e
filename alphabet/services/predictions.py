import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from ..clock import to_utc, utcnow
from ..errors import (
    BadRequestError,
    ConflictError,
    DeadlinePassedError,
    MatchNotOpenError,
    NotFoundError,
)
from ..models.match import Match, MatchStatus
from ..models.prediction import Prediction, PredictedOutcome
from ..models.team import Team

logger = logging.getLogger(__name__)


def _get_prediction(db: Session, user_id: int, match_id: int) -> Optional[Prediction]:
    statement = select(Prediction).where(
        Prediction.user_id == user_id,
        Prediction.match_id == match_id
    )
    return db.exec(statement).first()


def _apply(prediction: Prediction, outcome: PredictedOutcome, home_score: Optional[int], away_score: Optional[int]) -> None:
    if prediction.is_evaluated:
        raise ConflictError("Prediction has already been evaluated")
    prediction.predicted_outcome = outcome
    prediction.predicted_home_score = home_score
    prediction.predicted_away_score = away_score
    prediction.updated_at = utcnow()


def upsert_prediction(
    db: Session,
    user_id: int,
    match_id: int,
    predicted_outcome: PredictedOutcome,
    predicted_home_score: Optional[int] = None,
    predicted_away_score: Optional[int] = None,
    now: Optional[datetime] = None
) -> Prediction:
    """
    Create or replace the user's prediction for a match.

    Checks, in order: the match exists, the prediction deadline has not
    passed, and the match is still scheduled. Points and the evaluated flag
    are never touched here.
    """
    now = to_utc(now) if now else utcnow()

    match = db.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")

    if now >= to_utc(match.prediction_deadline):
        raise DeadlinePassedError("Prediction deadline has passed")

    if match.status != MatchStatus.SCHEDULED:
        raise MatchNotOpenError("Cannot predict on non-scheduled matches")

    if (predicted_home_score is None) != (predicted_away_score is None):
        raise BadRequestError("Provide both predicted scores or neither")

    outcome = PredictedOutcome(predicted_outcome)
    if (predicted_home_score is not None and
            PredictedOutcome.from_score(predicted_home_score, predicted_away_score) != outcome):
        raise BadRequestError("Predicted score does not match the predicted outcome")

    prediction = _get_prediction(db, user_id, match_id)
    if prediction:
        _apply(prediction, outcome, predicted_home_score, predicted_away_score)
    else:
        prediction = Prediction(
            user_id=user_id,
            match_id=match_id,
            predicted_outcome=outcome,
            predicted_home_score=predicted_home_score,
            predicted_away_score=predicted_away_score
        )
    db.add(prediction)

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the row first; overwrite it instead
        db.rollback()
        prediction = _get_prediction(db, user_id, match_id)
        if not prediction:
            raise
        _apply(prediction, outcome, predicted_home_score, predicted_away_score)
        db.add(prediction)
        db.commit()

    db.refresh(prediction)
    logger.debug("User %s predicted %s on match %s", user_id, outcome.value, match_id)
    return prediction


def list_user_predictions(db: Session, user_id: int, round_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """A user's predictions joined with match and team data, ordered by kickoff."""
    home_team = aliased(Team, name="home_team")
    away_team = aliased(Team, name="away_team")

    statement = (
        select(Prediction, Match, home_team, away_team)
        .join(Match, Prediction.match_id == Match.id)
        .outerjoin(home_team, Match.home_team_id == home_team.id)
        .outerjoin(away_team, Match.away_team_id == away_team.id)
        .where(Prediction.user_id == user_id)
    )
    if round_id is not None:
        statement = statement.where(Match.round_id == round_id)
    statement = statement.order_by(Match.match_date, Match.id)

    results = []
    for prediction, match, home, away in db.exec(statement).all():
        results.append({
            "id": prediction.id,
            "match_id": prediction.match_id,
            "predicted_outcome": prediction.predicted_outcome,
            "predicted_home_score": prediction.predicted_home_score,
            "predicted_away_score": prediction.predicted_away_score,
            "points_earned": prediction.points_earned,
            "is_evaluated": prediction.is_evaluated,
            "match_date": match.match_date,
            "home_score": match.home_score,
            "away_score": match.away_score,
            "status": match.status,
            "home_team_name": home.name if home else None,
            "home_team_short": home.short_name if home else None,
            "away_team_name": away.name if away else None,
            "away_team_short": away.short_name if away else None,
        })
    return results
