from .user import User
from .team import Team
from .round import Round
from .match import Match, MatchStatus
from .prediction import Prediction, PredictedOutcome
from .league_standing import LeagueStanding

__all__ = [
    "User",
    "Team",
    "Round",
    "Match",
    "MatchStatus",
    "Prediction",
    "PredictedOutcome",
    "LeagueStanding",
]
