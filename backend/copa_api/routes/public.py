"""
Public read-only endpoints (no auth): tournament page data by slug.
Draft tournaments are never exposed.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from copa_api.database import get_session
from copa_api.errors import TournamentNotFound
from copa_api.models.enums import TeamStatus, TournamentStatus
from copa_api.models.team import Team
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_team import TournamentTeam
from copa_api.routes.bracket import MatchResponse, match_to_response, teams_by_id
from copa_api.services.bracket_service import list_bracket, round_label

router = APIRouter()

_VISIBLE_STATUSES = [
    s.value for s in (TournamentStatus.PUBLISHED, TournamentStatus.IN_PROGRESS, TournamentStatus.FINISHED)
]


class PublicRosterEntry(BaseModel):
    team_id: int
    name: str
    short_name: Optional[str] = None
    crest_url: Optional[str] = None
    team_status: str
    registration_type: str


class PublicRound(BaseModel):
    round: int
    label: str
    matches: List[MatchResponse]


class PublicTournament(BaseModel):
    id: int
    name: str
    slug: str
    season: Optional[str] = None
    max_teams: int
    registration_mode: str
    status: str
    bracket_status: str
    champion_team_id: Optional[int] = None
    confirmed_count: int
    teams: List[PublicRosterEntry]
    rounds: List[PublicRound]


@router.get("/public/tournaments/{slug}", response_model=PublicTournament)
def get_public_tournament(slug: str, session: Session = Depends(get_session)):
    tournament = session.exec(
        select(Tournament).where(Tournament.slug == slug, Tournament.status.in_(_VISIBLE_STATUSES))
    ).first()
    if not tournament:
        raise TournamentNotFound()

    roster = session.exec(
        select(TournamentTeam, Team)
        .join(Team, Team.id == TournamentTeam.team_id)
        .where(TournamentTeam.tournament_id == tournament.id)
        .order_by(Team.name)
    ).all()

    matches = list_bracket(session, tournament.id)
    teams = teams_by_id(session, matches)
    rounds: List[PublicRound] = []
    for m in matches:
        if not rounds or rounds[-1].round != m.round:
            rounds.append(PublicRound(round=m.round, label=round_label(tournament.max_teams, m.round), matches=[]))
        rounds[-1].matches.append(match_to_response(m, tournament.max_teams, teams))

    return PublicTournament(
        id=tournament.id,
        name=tournament.name,
        slug=tournament.slug,
        season=tournament.season,
        max_teams=tournament.max_teams,
        registration_mode=tournament.registration_mode,
        status=tournament.status,
        bracket_status=tournament.bracket_status,
        champion_team_id=tournament.champion_team_id,
        confirmed_count=sum(1 for reg, _ in roster if reg.team_status == TeamStatus.CONFIRMED),
        teams=[
            PublicRosterEntry(
                team_id=team.id,
                name=team.name,
                short_name=team.short_name,
                crest_url=team.crest_url,
                team_status=reg.team_status,
                registration_type=reg.registration_type,
            )
            for reg, team in roster
        ],
        rounds=rounds,
    )
