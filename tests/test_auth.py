from datetime import timedelta

import jwt
import pytest
from sqlmodel import select

from alphabet.config import JWT_ALGORITHM, JWT_SECRET
from alphabet.errors import AuthenticationError, BadRequestError
from alphabet.models import User
from alphabet.services import auth
from alphabet.services.auth import (
    authenticate_user,
    create_access_token,
    decode_access_token,
    hash_password,
    register_user,
    verify_password,
)


def test_password_hashing():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert hashed != password
    assert isinstance(hashed, str)
    assert len(hashed) > 0


def test_password_verification_success():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert verify_password(password, hashed) is True


def test_password_verification_failure():
    hashed = hash_password("secure_password_123")

    assert verify_password("wrong_password", hashed) is False


def test_password_long_truncation():
    # bcrypt only considers the first 72 bytes
    long_password = "a" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True
    assert verify_password("a" * 72, hashed) is True
    assert verify_password("b" * 72, hashed) is False


def test_token_round_trip():
    token = create_access_token(42)

    assert decode_access_token(token) == 42


def test_token_expires_after_seven_days():
    token = create_access_token(1)
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])

    assert payload["exp"] - payload["iat"] == int(timedelta(days=7).total_seconds())


def test_expired_token_rejected():
    token = create_access_token(1, expires_in=timedelta(seconds=-10))

    with pytest.raises(AuthenticationError, match="expired"):
        decode_access_token(token)


def test_token_signed_with_other_secret_rejected():
    token = jwt.encode({"sub": "1"}, "a-different-secret-of-reasonable-length", algorithm=JWT_ALGORITHM)

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_garbage_token_rejected():
    with pytest.raises(AuthenticationError):
        decode_access_token("definitely.not.ajwt")


def test_token_without_subject_rejected():
    token = jwt.encode({"user": 1}, JWT_SECRET, algorithm=JWT_ALGORITHM)

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_register_user_stores_hash_not_password(session):
    user = register_user(session, "bob", "Bob@Example.com", "hunter22")

    assert user.id is not None
    assert user.email == "bob@example.com"
    assert user.is_admin is False
    assert user.total_points == 0
    assert user.password_hash != "hunter22"
    assert verify_password("hunter22", user.password_hash)


def test_register_user_rejects_short_password(session):
    with pytest.raises(BadRequestError, match="at least 6"):
        register_user(session, "bob", "bob@example.com", "12345")


def test_register_user_rejects_bad_email(session):
    with pytest.raises(BadRequestError, match="email"):
        register_user(session, "bob", "not-an-email", "hunter22")


def test_register_user_rejects_duplicates(session):
    register_user(session, "bob", "bob@example.com", "hunter22")

    with pytest.raises(BadRequestError, match="already exists"):
        register_user(session, "bob", "other@example.com", "hunter22")
    with pytest.raises(BadRequestError, match="already exists"):
        register_user(session, "robert", "bob@example.com", "hunter22")


def test_register_user_loses_race_to_concurrent_signup(session, monkeypatch):
    real_hash = auth.hash_password

    def hash_after_competitor_signs_up(password):
        session.add(User(username="bobby", email="bob@example.com", password_hash=real_hash("other1")))
        session.commit()
        return real_hash(password)

    monkeypatch.setattr(auth, "hash_password", hash_after_competitor_signs_up)

    with pytest.raises(BadRequestError, match="already exists"):
        register_user(session, "bob", "bob@example.com", "hunter22")

    users = session.exec(select(User)).all()
    assert [u.username for u in users] == ["bobby"]


def test_authenticate_user(session):
    register_user(session, "bob", "bob@example.com", "hunter22")

    assert authenticate_user(session, "bob@example.com", "hunter22").username == "bob"
    with pytest.raises(AuthenticationError):
        authenticate_user(session, "bob@example.com", "wrong-password")
    with pytest.raises(AuthenticationError):
        authenticate_user(session, "nobody@example.com", "hunter22")
