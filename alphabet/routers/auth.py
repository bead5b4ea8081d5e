from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..dependencies import get_current_user
from ..errors import BadRequestError
from ..models.user import User
from ..schemas import LoginRequest, RegisterRequest
from ..services.auth import authenticate_user, create_access_token, register_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
async def register(
    body: RegisterRequest,
    db: Session = Depends(get_session)
):
    """Create an account and log it in."""
    user = register_user(db, body.username, body.email, body.password)
    return {
        "token": create_access_token(user.id),
        "user": user.to_public()
    }


@router.post("/login")
async def login(
    body: LoginRequest,
    db: Session = Depends(get_session)
):
    """Exchange email and password for a bearer token."""
    if not body.email or not body.password:
        raise BadRequestError("Email and password are required")

    user = authenticate_user(db, body.email, body.password)
    return {
        "token": create_access_token(user.id),
        "user": user.to_public()
    }


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"user": current_user.to_public()}
