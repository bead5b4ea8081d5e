import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, or_

from ..config import JWT_ALGORITHM, JWT_SECRET, MIN_PASSWORD_LENGTH, TOKEN_EXPIRE_DAYS
from ..errors import AuthenticationError, BadRequestError
from ..models.user import User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


def create_access_token(user_id: int, expires_in: Optional[timedelta] = None) -> str:
    """Issue a signed bearer token for an account."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + (expires_in or timedelta(days=TOKEN_EXPIRE_DAYS)),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Validate a bearer token and return the account id it carries.

    Expired and malformed tokens are logged differently but both raise
    AuthenticationError.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected invalid access token: %s", exc)
        raise AuthenticationError("Invalid token")

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.info("Rejected access token without a usable subject")
        raise AuthenticationError("Invalid token")


def register_user(db: Session, username: str, email: str, password: str) -> User:
    """Create a regular (non-admin) account after validating the input."""
    username = username.strip()
    email = email.strip().lower()

    if not username or not email or not password:
        raise BadRequestError("All fields are required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not EMAIL_PATTERN.match(email):
        raise BadRequestError("Invalid email format")

    statement = select(User).where(or_(User.email == email, User.username == username))
    if db.exec(statement).first():
        raise BadRequestError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=False
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another registration took the name or email after the check above
        db.rollback()
        raise BadRequestError("Username or email already exists")
    db.refresh(user)

    logger.info("Registered account %s (%s)", user.id, user.username)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Authenticate a user by email and password."""
    statement = select(User).where(User.email == email.strip().lower())
    user = db.exec(statement).first()

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise AuthenticationError("Invalid credentials")

    return user


def ensure_admin_user(db: Session, username: str, email: str, password: str) -> User:
    """Create the admin account if it doesn't exist yet."""
    statement = select(User).where(User.email == email.lower())
    admin_user = db.exec(statement).first()
    if admin_user:
        return admin_user

    admin_user = User(
        username=username,
        email=email.lower(),
        password_hash=hash_password(password),
        is_admin=True
    )
    db.add(admin_user)
    db.commit()
    db.refresh(admin_user)

    logger.info("Seeded admin account %s", admin_user.username)
    return admin_user
