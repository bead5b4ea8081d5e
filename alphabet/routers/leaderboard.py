from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ..config import LEADERBOARD_LIMIT
from ..database import get_session
from ..models.user import User
from ..services.standings import list_standings

router = APIRouter(prefix="/api", tags=["leaderboard"])


@router.get("/leaderboard")
async def leaderboard(db: Session = Depends(get_session)):
    """Top non-admin players by running point total."""
    statement = (
        select(User.id, User.username, User.total_points)
        .where(User.is_admin == False)  # noqa: E712
        .order_by(User.total_points.desc(), User.username)
        .limit(LEADERBOARD_LIMIT)
    )
    results = db.exec(statement).all()

    return [
        {
            "rank": i + 1,
            "id": row[0],
            "username": row[1],
            "total_points": row[2]
        }
        for i, row in enumerate(results)
    ]


@router.get("/standings")
async def standings(db: Session = Depends(get_session)):
    """League table ordered by position."""
    return list_standings(db)
