from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..dependencies import get_current_user
from ..errors import NotFoundError, PermissionDeniedError
from ..models.user import User
from ..schemas import PredictionCreate
from ..services.predictions import list_user_predictions, upsert_prediction

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


@router.post("")
async def submit_prediction(
    body: PredictionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    """Create or update the caller's prediction for a match."""
    prediction = upsert_prediction(
        db,
        user_id=current_user.id,
        match_id=body.match_id,
        predicted_outcome=body.predicted_outcome,
        predicted_home_score=body.predicted_home_score,
        predicted_away_score=body.predicted_away_score
    )

    return {
        "id": prediction.id,
        "match_id": prediction.match_id,
        "predicted_outcome": prediction.predicted_outcome,
        "predicted_home_score": prediction.predicted_home_score,
        "predicted_away_score": prediction.predicted_away_score
    }


@router.get("/user/{user_id}")
async def get_user_predictions(
    user_id: int,
    round_id: Optional[int] = Query(default=None, alias="roundId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    """A user's predictions. Only admins may look at other users."""
    if user_id != current_user.id and not current_user.is_admin:
        raise PermissionDeniedError("Access denied")

    if user_id != current_user.id and not db.get(User, user_id):
        raise NotFoundError("User not found")

    return list_user_predictions(db, user_id, round_id)
