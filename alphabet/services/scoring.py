import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from ..clock import utcnow
from ..errors import NotFoundError
from ..models.match import Match, MatchStatus
from ..models.prediction import Prediction, PredictedOutcome
from ..models.user import User

logger = logging.getLogger(__name__)

OUTCOME_POINTS = 3
EXACT_SCORE_POINTS = 2


class SettlementReport(BaseModel):
    match_id: int
    outcome: Optional[PredictedOutcome] = None
    candidates: int = 0  # unevaluated predictions found
    evaluated: int = 0  # predictions this run claimed and credited
    skipped: int = 0  # already claimed by a concurrent run
    points_awarded: int = 0
    error: Optional[str] = None


def derive_outcome(home_score: int, away_score: int) -> PredictedOutcome:
    """home_win if home > away, away_win if away > home, else draw."""
    return PredictedOutcome.from_score(home_score, away_score)


def calculate_points(prediction: Prediction, match: Match) -> int:
    """
    Calculate points for a single prediction.

    Scoring:
    - Correct outcome (home win / away win / draw): 3 points
    - Exact score: +2 points (total 5)
    """
    # Can't calculate if match has no result
    if match.home_score is None or match.away_score is None:
        return 0

    points = 0
    actual_outcome = derive_outcome(match.home_score, match.away_score)

    if prediction.predicted_outcome == actual_outcome:
        points += OUTCOME_POINTS

    if (prediction.predicted_home_score == match.home_score and
            prediction.predicted_away_score == match.away_score):
        points += EXACT_SCORE_POINTS

    return points


def settle_match(db: Session, match_id: int) -> SettlementReport:
    """
    Score every unevaluated prediction on a finished match and credit the
    owning accounts.

    Each prediction is claimed with a conditional update that only succeeds
    while is_evaluated is still false, and the account is credited only when
    the claim succeeded. All claims and credits for the match commit in one
    transaction, so running this twice (or concurrently) never double-counts.
    Store errors roll the whole run back and are reported, not raised.
    """
    match = db.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")

    report = SettlementReport(match_id=match_id)

    if match.status != MatchStatus.FINISHED or match.home_score is None or match.away_score is None:
        logger.info("Match %s has no final result yet, nothing to settle", match_id)
        return report

    report.outcome = derive_outcome(match.home_score, match.away_score)

    try:
        statement = select(Prediction).where(
            Prediction.match_id == match_id,
            Prediction.is_evaluated == False  # noqa: E712
        )
        predictions = db.exec(statement).all()
        report.candidates = len(predictions)

        now = utcnow()
        for prediction in predictions:
            points = calculate_points(prediction, match)

            claim = (
                update(Prediction)
                .where(
                    Prediction.id == prediction.id,
                    Prediction.is_evaluated == False  # noqa: E712
                )
                .values(points_earned=points, is_evaluated=True, updated_at=now)
            )
            if db.exec(claim).rowcount != 1:
                report.skipped += 1
                continue

            credit = (
                update(User)
                .where(User.id == prediction.user_id)
                .values(total_points=User.total_points + points, updated_at=now)
            )
            db.exec(credit)

            report.evaluated += 1
            report.points_awarded += points

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Settlement failed for match %s", match_id)
        return SettlementReport(
            match_id=match_id,
            outcome=report.outcome,
            candidates=report.candidates,
            error="Settlement failed; no predictions were evaluated",
        )

    logger.info(
        "Evaluated %s of %s predictions for match %s (%s points awarded)",
        report.evaluated, report.candidates, match_id, report.points_awarded
    )
    return report


def recalculate_user_totals(db: Session) -> int:
    """
    Reset every account's running total to the sum of its evaluated
    predictions' points. Returns the number of accounts corrected.
    """
    earned = func.coalesce(func.sum(Prediction.points_earned), 0)
    statement = (
        select(User, earned)
        .outerjoin(
            Prediction,
            (Prediction.user_id == User.id) & (Prediction.is_evaluated == True)  # noqa: E712
        )
        .group_by(User.id)
    )

    corrected = 0
    for user, total in db.exec(statement).all():
        if user.total_points != total:
            logger.warning(
                "Correcting total for user %s: %s -> %s", user.id, user.total_points, total
            )
            user.total_points = total
            user.updated_at = utcnow()
            db.add(user)
            corrected += 1

    db.commit()
    return corrected
