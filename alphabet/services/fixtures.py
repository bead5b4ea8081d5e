import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from ..clock import to_utc
from ..errors import BadRequestError, NotFoundError
from ..models.match import Match, MatchStatus
from ..models.round import Round
from ..models.team import Team

logger = logging.getLogger(__name__)


def create_team(db: Session, name: str, short_name: str, logo_url: Optional[str] = None) -> Team:
    team = Team(name=name.strip(), short_name=short_name.strip().upper(), logo_url=logo_url or None)
    db.add(team)
    db.commit()
    db.refresh(team)
    return team


def create_round(
    db: Session,
    round_number: int,
    name: str,
    start_date: datetime,
    end_date: datetime
) -> Round:
    start_date = to_utc(start_date)
    end_date = to_utc(end_date)
    if end_date < start_date:
        raise BadRequestError("Round end date must not be before its start date")

    existing = db.exec(select(Round).where(Round.round_number == round_number)).first()
    if existing:
        raise BadRequestError(f"Round {round_number} already exists")

    round_ = Round(
        round_number=round_number,
        name=name,
        start_date=start_date,
        end_date=end_date,
        is_active=False
    )
    db.add(round_)
    db.commit()
    db.refresh(round_)

    logger.info("Created round %s (%s)", round_.round_number, round_.name)
    return round_


def create_match(
    db: Session,
    round_id: int,
    home_team_id: int,
    away_team_id: int,
    match_date: datetime,
    prediction_deadline: Optional[datetime] = None
) -> Match:
    """Schedule a match. The prediction deadline defaults to kickoff."""
    if not db.get(Round, round_id):
        raise NotFoundError("Round not found")

    for team_id in (home_team_id, away_team_id):
        if not db.get(Team, team_id):
            raise NotFoundError(f"Team {team_id} not found")

    if home_team_id == away_team_id:
        raise BadRequestError("A team cannot play against itself")

    match_date = to_utc(match_date)
    deadline = to_utc(prediction_deadline) if prediction_deadline else match_date
    if deadline > match_date:
        raise BadRequestError("Prediction deadline must not be after kickoff")

    match = Match(
        round_id=round_id,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        match_date=match_date,
        prediction_deadline=deadline,
        status=MatchStatus.SCHEDULED
    )
    db.add(match)
    db.commit()
    db.refresh(match)

    logger.info("Scheduled match %s: team %s vs team %s", match.id, home_team_id, away_team_id)
    return match


def record_result(
    db: Session,
    match_id: int,
    home_score: Optional[int],
    away_score: Optional[int],
    status: MatchStatus = MatchStatus.FINISHED
) -> Match:
    """Store the (final or running) score and new status of a match."""
    match = db.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")

    match.apply_result(MatchStatus(status), home_score, away_score)
    db.add(match)
    db.commit()
    db.refresh(match)

    logger.info(
        "Match %s is now %s (%s-%s)", match.id, match.status.value, match.home_score, match.away_score
    )
    return match


def list_matches(db: Session, round_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Matches joined with team and round names, ordered by kickoff."""
    home_team = aliased(Team, name="home_team")
    away_team = aliased(Team, name="away_team")

    statement = (
        select(Match, home_team, away_team, Round)
        .outerjoin(home_team, Match.home_team_id == home_team.id)
        .outerjoin(away_team, Match.away_team_id == away_team.id)
        .outerjoin(Round, Match.round_id == Round.id)
    )
    if round_id is not None:
        statement = statement.where(Match.round_id == round_id)
    statement = statement.order_by(Match.match_date, Match.id)

    matches = []
    for match, home, away, round_ in db.exec(statement).all():
        matches.append({
            "id": match.id,
            "round_id": match.round_id,
            "match_date": match.match_date,
            "prediction_deadline": match.prediction_deadline,
            "home_score": match.home_score,
            "away_score": match.away_score,
            "status": match.status,
            "home_team_id": match.home_team_id,
            "home_team_name": home.name if home else None,
            "home_team_short": home.short_name if home else None,
            "away_team_id": match.away_team_id,
            "away_team_name": away.name if away else None,
            "away_team_short": away.short_name if away else None,
            "round_name": round_.name if round_ else None,
            "round_number": round_.round_number if round_ else None,
        })
    return matches
