from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_admin
from ..models.match import MatchStatus
from ..models.user import User
from ..schemas import MatchCreate, MatchResultUpdate, RoundCreate, TeamCreate
from ..services.fixtures import create_match, create_round, create_team, record_result
from ..services.scoring import settle_match
from ..services.standings import recalculate_league_table

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/teams")
async def admin_create_team(
    body: TeamCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return create_team(db, body.name, body.short_name, body.logo_url)


@router.post("/rounds")
async def admin_create_round(
    body: RoundCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    round_ = create_round(db, body.round_number, body.name, body.start_date, body.end_date)
    return {
        "id": round_.id,
        "round_number": round_.round_number,
        "name": round_.name,
        "start_date": round_.start_date,
        "end_date": round_.end_date
    }


@router.post("/matches")
async def admin_create_match(
    body: MatchCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Schedule a new match (status starts as scheduled)."""
    match = create_match(
        db,
        round_id=body.round_id,
        home_team_id=body.home_team_id,
        away_team_id=body.away_team_id,
        match_date=body.match_date,
        prediction_deadline=body.prediction_deadline
    )
    return {
        "id": match.id,
        "status": match.status,
        "prediction_deadline": match.prediction_deadline
    }


@router.put("/matches/{match_id}/result")
async def admin_update_result(
    match_id: int,
    body: MatchResultUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Record a score and status; a finished match is settled right away."""
    match = record_result(db, match_id, body.home_score, body.away_score, body.status)

    settlement = None
    if match.status == MatchStatus.FINISHED:
        settlement = settle_match(db, match.id)

    return {
        "success": True,
        "match": {
            "id": match.id,
            "status": match.status,
            "home_score": match.home_score,
            "away_score": match.away_score
        },
        "settlement": settlement
    }


@router.post("/matches/{match_id}/settle")
async def admin_settle_match(
    match_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Re-run settlement, e.g. after a failed run. Already scored predictions are left alone."""
    return settle_match(db, match_id)


@router.post("/standings/recalculate")
async def admin_recalculate_standings(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return recalculate_league_table(db)
