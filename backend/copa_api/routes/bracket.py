"""
Admin bracket actions: generate the draw, list matches, record results, wipe the bracket.
Results advance winners into the next round (placement only; no automatic results).
"""
import random
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from copa_api.auth import require_admin
from copa_api.config import Settings, get_settings
from copa_api.database import get_session
from copa_api.errors import TournamentNotFound
from copa_api.models.team import Team
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.services.bracket_service import (
    generate_bracket,
    list_bracket,
    record_match_result,
    reset_bracket,
    round_label,
)

router = APIRouter(dependencies=[Depends(require_admin)])


class MatchResultPayload(BaseModel):
    score_a: int = Field(ge=0, strict=True)
    score_b: int = Field(ge=0, strict=True)
    penalties_a: Optional[int] = Field(default=None, ge=0, strict=True)
    penalties_b: Optional[int] = Field(default=None, ge=0, strict=True)


class TeamRef(BaseModel):
    id: int
    name: str
    short_name: Optional[str] = None
    crest_url: Optional[str] = None


class MatchResponse(BaseModel):
    id: int
    round: int
    round_label: str
    match_number: int
    state: str
    team_a: Optional[TeamRef] = None
    team_b: Optional[TeamRef] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    penalties_a: Optional[int] = None
    penalties_b: Optional[int] = None
    winner_team_id: Optional[int] = None
    is_bye: bool = False
    next_match_id: Optional[int] = None
    next_slot: Optional[str] = None
    completed_at: Optional[datetime] = None


class BracketResponse(BaseModel):
    tournament_id: int
    bracket_status: str
    champion_team_id: Optional[int] = None
    matches: List[MatchResponse]


class GenerateBracketResponse(BaseModel):
    tournament_id: int
    bracket_status: str
    rounds: int
    matches_created: int
    byes: int


class MatchResultResponse(BaseModel):
    match: MatchResponse
    loser_team_id: int
    champion_team_id: Optional[int] = None


def _team_ref(team: Optional[Team]) -> Optional[TeamRef]:
    if team is None:
        return None
    return TeamRef(id=team.id, name=team.name, short_name=team.short_name, crest_url=team.crest_url)


def match_to_response(m: TournamentMatch, capacity: int, teams: Dict[int, Team]) -> MatchResponse:
    return MatchResponse(
        id=m.id,
        round=m.round,
        round_label=round_label(capacity, m.round),
        match_number=m.match_number,
        state=m.state.value,
        team_a=_team_ref(teams.get(m.team_a_id)),
        team_b=_team_ref(teams.get(m.team_b_id)),
        score_a=m.score_a,
        score_b=m.score_b,
        penalties_a=m.penalties_a,
        penalties_b=m.penalties_b,
        winner_team_id=m.winner_team_id,
        is_bye=m.is_bye,
        next_match_id=m.next_match_id,
        next_slot=m.next_slot,
        completed_at=m.completed_at,
    )


def teams_by_id(session: Session, matches: List[TournamentMatch]) -> Dict[int, Team]:
    ids = {tid for m in matches for tid in (m.team_a_id, m.team_b_id) if tid is not None}
    if not ids:
        return {}
    return {t.id: t for t in session.exec(select(Team).where(Team.id.in_(ids))).all()}


@router.post("/admin/tournaments/{tournament_id}/generate-bracket", response_model=GenerateBracketResponse)
def generate_tournament_bracket(
    tournament_id: int,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Draw confirmed teams and create every match (round 1 through final)."""
    rng = random.Random(settings.bracket_draw_seed) if settings.bracket_draw_seed is not None else None
    result = generate_bracket(session, tournament_id, allow_byes=settings.bracket_allow_byes, rng=rng)
    return GenerateBracketResponse(**result)


@router.get("/admin/tournaments/{tournament_id}/matches", response_model=BracketResponse)
def list_tournament_matches(tournament_id: int, session: Session = Depends(get_session)):
    """Bracket matches ordered by round, then match number"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    matches = list_bracket(session, tournament_id)
    teams = teams_by_id(session, matches)
    return BracketResponse(
        tournament_id=tournament.id,
        bracket_status=tournament.bracket_status,
        champion_team_id=tournament.champion_team_id,
        matches=[match_to_response(m, tournament.max_teams, teams) for m in matches],
    )


@router.patch("/admin/tournaments/{tournament_id}/matches/{match_id}", response_model=MatchResultResponse)
def save_match_result(
    tournament_id: int,
    match_id: int,
    payload: MatchResultPayload,
    session: Session = Depends(get_session),
):
    """Save the score (and penalties on a tie), decide the winner and advance it."""
    outcome = record_match_result(
        session,
        tournament_id,
        match_id,
        score_a=payload.score_a,
        score_b=payload.score_b,
        penalties_a=payload.penalties_a,
        penalties_b=payload.penalties_b,
    )

    tournament = session.get(Tournament, tournament_id)
    match = session.get(TournamentMatch, match_id)
    return MatchResultResponse(
        match=match_to_response(match, tournament.max_teams, teams_by_id(session, [match])),
        loser_team_id=outcome["loser_team_id"],
        champion_team_id=outcome["champion_team_id"],
    )


@router.delete("/admin/tournaments/{tournament_id}/bracket", response_model=Dict[str, int])
def delete_tournament_bracket(tournament_id: int, session: Session = Depends(get_session)):
    """Wipe all matches so the bracket can be generated again."""
    return reset_bracket(session, tournament_id)
