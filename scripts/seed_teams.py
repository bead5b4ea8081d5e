"""Seed the league's teams."""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete
from sqlmodel import Session, select
from alphabet.database import engine, create_db_and_tables
from alphabet.models import LeagueStanding, Match, Team

TEAMS = [
    {"name": "Arsenal", "short_name": "ARS"},
    {"name": "Aston Villa", "short_name": "AVL"},
    {"name": "Bournemouth", "short_name": "BOU"},
    {"name": "Brentford", "short_name": "BRE"},
    {"name": "Brighton", "short_name": "BHA"},
    {"name": "Chelsea", "short_name": "CHE"},
    {"name": "Crystal Palace", "short_name": "CRY"},
    {"name": "Everton", "short_name": "EVE"},
    {"name": "Fulham", "short_name": "FUL"},
    {"name": "Liverpool", "short_name": "LIV"},
    {"name": "Manchester City", "short_name": "MCI"},
    {"name": "Manchester United", "short_name": "MUN"},
    {"name": "Newcastle", "short_name": "NEW"},
    {"name": "Nottingham Forest", "short_name": "NFO"},
    {"name": "Tottenham", "short_name": "TOT"},
    {"name": "West Ham", "short_name": "WHU"},
    {"name": "Wolves", "short_name": "WOL"},
]


def seed_teams(session: Session, force: bool = False) -> int:
    """Insert the league's teams. Returns how many were added."""
    if session.exec(select(Team)).first():
        if not force:
            print("Teams already seeded. Use --force to re-seed.")
            return 0
        if session.exec(select(Match)).first():
            raise SystemExit("Matches reference the current teams; refusing to re-seed.")
        session.exec(delete(LeagueStanding))
        session.exec(delete(Team))

    for team_data in TEAMS:
        session.add(Team(**team_data))

    session.commit()
    print(f"Seeded {len(TEAMS)} teams.")
    return len(TEAMS)


if __name__ == "__main__":
    create_db_and_tables()
    with Session(engine) as session:
        seed_teams(session, force="--force" in sys.argv)
