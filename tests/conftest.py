from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from alphabet.clock import utcnow
from alphabet.database import get_session
from alphabet.models import Match, MatchStatus, Round, Team, User
from alphabet.services.auth import create_access_token, hash_password

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def create_user(
    session: Session,
    username: str = "alice",
    password: str = "password123",
    is_admin: bool = False,
    total_points: int = 0,
    password_hash: str = None
) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=password_hash or hash_password(password),
        is_admin=is_admin,
        total_points=total_points
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def create_match(session: Session, round_: Round, home: Team, away: Team, **overrides) -> Match:
    """A scheduled match kicking off in two days, open for predictions until tomorrow."""
    now = utcnow()
    values = {
        "round_id": round_.id,
        "home_team_id": home.id,
        "away_team_id": away.id,
        "match_date": now + timedelta(days=2),
        "prediction_deadline": now + timedelta(days=1),
        "status": MatchStatus.SCHEDULED,
    }
    values.update(overrides)
    match = Match(**values)
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


@pytest.fixture(name="user")
def user_fixture(session: Session) -> User:
    return create_user(session, "alice")


@pytest.fixture(name="admin")
def admin_fixture(session: Session) -> User:
    return create_user(session, "admin", is_admin=True)


@pytest.fixture(name="user_headers")
def user_headers_fixture(user: User) -> dict:
    return auth_headers(user)


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin: User) -> dict:
    return auth_headers(admin)


@pytest.fixture(name="teams")
def teams_fixture(session: Session):
    arsenal = Team(name="Arsenal", short_name="ARS")
    chelsea = Team(name="Chelsea", short_name="CHE")
    liverpool = Team(name="Liverpool", short_name="LIV")
    session.add_all([arsenal, chelsea, liverpool])
    session.commit()
    for team in (arsenal, chelsea, liverpool):
        session.refresh(team)
    return arsenal, chelsea, liverpool


@pytest.fixture(name="round_")
def round_fixture(session: Session) -> Round:
    now = utcnow()
    round_ = Round(
        round_number=1,
        name="Matchday 1",
        start_date=now,
        end_date=now + timedelta(days=7)
    )
    session.add(round_)
    session.commit()
    session.refresh(round_)
    return round_


@pytest.fixture(name="match")
def match_fixture(session: Session, round_: Round, teams) -> Match:
    home, away, _ = teams
    return create_match(session, round_, home, away)
