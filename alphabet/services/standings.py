from typing import Any, Dict, List
from sqlalchemy import delete
from sqlmodel import Session, select

from ..clock import utcnow
from ..models.league_standing import LeagueStanding
from ..models.match import Match, MatchStatus
from ..models.team import Team


def list_standings(db: Session) -> List[Dict[str, Any]]:
    """League table joined with team names, ordered by position."""
    statement = (
        select(LeagueStanding, Team)
        .join(Team, LeagueStanding.team_id == Team.id)
        .order_by(LeagueStanding.position)
    )
    return [
        {
            "position": standing.position,
            "team_id": team.id,
            "team_name": team.name,
            "short_name": team.short_name,
            "matches_played": standing.matches_played,
            "wins": standing.wins,
            "draws": standing.draws,
            "losses": standing.losses,
            "goals_for": standing.goals_for,
            "goals_against": standing.goals_against,
            "goal_difference": standing.goal_difference,
            "points": standing.points,
        }
        for standing, team in db.exec(statement).all()
    ]


def recalculate_league_table(db: Session) -> List[Dict[str, Any]]:
    """
    Rebuild the league table from finished matches.
    Teams are sorted by: Points > Goal Diff > Goals Scored > Name
    """
    teams = db.exec(select(Team)).all()
    stats: Dict[int, Dict[str, Any]] = {
        team.id: {
            "team": team,
            "played": 0,
            "won": 0,
            "drawn": 0,
            "lost": 0,
            "goals_for": 0,
            "goals_against": 0,
            "points": 0,
        }
        for team in teams
    }

    finished = db.exec(select(Match).where(Match.status == MatchStatus.FINISHED)).all()
    for match in finished:
        if match.home_score is None or match.away_score is None:
            continue
        home = stats.get(match.home_team_id)
        away = stats.get(match.away_team_id)
        if home is None or away is None:
            continue

        home["played"] += 1
        away["played"] += 1
        home["goals_for"] += match.home_score
        home["goals_against"] += match.away_score
        away["goals_for"] += match.away_score
        away["goals_against"] += match.home_score

        if match.home_score > match.away_score:
            home["won"] += 1
            home["points"] += 3
            away["lost"] += 1
        elif match.home_score < match.away_score:
            away["won"] += 1
            away["points"] += 3
            home["lost"] += 1
        else:
            home["drawn"] += 1
            away["drawn"] += 1
            home["points"] += 1
            away["points"] += 1

    ordered = sorted(
        stats.values(),
        key=lambda s: (
            -s["points"],
            -(s["goals_for"] - s["goals_against"]),
            -s["goals_for"],
            s["team"].name,
        )
    )

    db.exec(delete(LeagueStanding))
    now = utcnow()
    for position, s in enumerate(ordered, start=1):
        db.add(LeagueStanding(
            team_id=s["team"].id,
            position=position,
            matches_played=s["played"],
            wins=s["won"],
            draws=s["drawn"],
            losses=s["lost"],
            goals_for=s["goals_for"],
            goals_against=s["goals_against"],
            goal_difference=s["goals_for"] - s["goals_against"],
            points=s["points"],
            updated_at=now
        ))
    db.commit()

    return list_standings(db)
