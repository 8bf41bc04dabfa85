# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from copa_api.models.team import Team  # noqa: F401
from copa_api.models.tournament import Tournament  # noqa: F401
from copa_api.models.tournament_match import TournamentMatch  # noqa: F401
from copa_api.models.tournament_team import TournamentTeam  # noqa: F401
from copa_api.models.user_session import UserSession  # noqa: F401
