from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from ..database import get_session
from ..models.round import Round
from ..models.team import Team
from ..services.fixtures import list_matches

router = APIRouter(prefix="/api", tags=["fixtures"])


@router.get("/teams")
async def get_teams(db: Session = Depends(get_session)):
    """All teams in name order."""
    return db.exec(select(Team).order_by(Team.name)).all()


@router.get("/rounds")
async def get_rounds(db: Session = Depends(get_session)):
    """All rounds in sequence order."""
    return db.exec(select(Round).order_by(Round.round_number)).all()


@router.get("/matches")
async def get_matches(
    round_id: Optional[int] = Query(default=None, alias="roundId"),
    db: Session = Depends(get_session)
):
    """Matches with team and round names, ordered by kickoff."""
    return list_matches(db, round_id)
