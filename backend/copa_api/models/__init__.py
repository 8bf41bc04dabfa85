from copa_api.models.enums import (
    BracketStatus,
    MatchSlot,
    MatchState,
    PaymentStatus,
    RegistrationMode,
    TeamStatus,
    TournamentStatus,
)
from copa_api.models.team import Team
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.models.tournament_team import TournamentTeam
from copa_api.models.user_session import UserSession

__all__ = [
    "Tournament",
    "TournamentTeam",
    "TournamentMatch",
    "Team",
    "UserSession",
    "BracketStatus",
    "MatchSlot",
    "MatchState",
    "PaymentStatus",
    "RegistrationMode",
    "TeamStatus",
    "TournamentStatus",
]
