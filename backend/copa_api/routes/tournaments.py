import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, func, select

from copa_api.auth import require_admin
from copa_api.database import get_session
from copa_api.errors import BracketLocked, TournamentNotFound, ValidationError
from copa_api.models.enums import BracketStatus, RegistrationMode, TournamentStatus
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.models.tournament_team import TournamentTeam
from copa_api.services import tournament_service
from copa_api.utils.slug import SLUG_PATTERN, slugify, unique_slug

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _check_slug(v):
    if v is not None and not SLUG_PATTERN.match(v):
        raise ValueError("slug: only lowercase letters, digits and hyphens")
    return v


def _resolve_slug(base: str, existing: List[str]) -> str:
    if not slugify(base):
        raise ValidationError("slug: needs at least one letter or digit")
    return unique_slug(base, existing)


class TournamentCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    season: Optional[str] = None
    region: Optional[str] = None
    max_teams: int = Field(default=16, ge=1, le=32)
    registration_mode: RegistrationMode
    registration_fee_amount: Optional[float] = Field(default=None, ge=0)
    status: TournamentStatus = TournamentStatus.DRAFT

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _check_slug(v)


class TournamentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = None
    season: Optional[str] = None
    region: Optional[str] = None
    max_teams: Optional[int] = Field(default=None, ge=1, le=32)
    registration_mode: Optional[RegistrationMode] = None
    registration_fee_amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[TournamentStatus] = None

    @field_validator("name", "slug", "max_teams", "registration_mode", "status")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _check_slug(v)


class TournamentResponse(BaseModel):
    id: int
    name: str
    slug: str
    season: Optional[str]
    region: Optional[str]
    max_teams: int
    registration_mode: str
    registration_fee_amount: Optional[float]
    status: str
    bracket_status: str
    champion_team_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TournamentDetailResponse(TournamentResponse):
    team_count: int = 0
    match_count: int = 0


class TournamentListResponse(BaseModel):
    tournaments: List[TournamentResponse]
    total: int
    page: int
    limit: int
    total_pages: int


def _existing_slugs(session: Session, exclude_id: Optional[int] = None) -> List[str]:
    query = select(Tournament.slug)
    if exclude_id is not None:
        query = query.where(Tournament.id != exclude_id)
    return list(session.exec(query).all())


@router.get("/admin/tournaments", response_model=TournamentListResponse)
def list_tournaments(
    status: Optional[TournamentStatus] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    session: Session = Depends(get_session),
):
    """List tournaments, newest first"""
    query = select(Tournament)
    count_query = select(func.count(Tournament.id))
    if status is not None:
        query = query.where(Tournament.status == status)
        count_query = count_query.where(Tournament.status == status)

    total = session.exec(count_query).one()
    tournaments = session.exec(
        query.order_by(Tournament.created_at.desc(), Tournament.id.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return TournamentListResponse(
        tournaments=[TournamentResponse.model_validate(t) for t in tournaments],
        total=total,
        page=page,
        limit=limit,
        total_pages=max(1, -(-total // limit)),
    )


@router.post("/admin/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament. Slug collisions get a numeric suffix."""
    data = tournament_data.model_dump()
    data["slug"] = _resolve_slug(data["slug"] or data["name"], _existing_slugs(session))
    if data["registration_mode"] != RegistrationMode.PAID:
        data["registration_fee_amount"] = None
    elif data["registration_fee_amount"] is None:
        data["registration_fee_amount"] = 0

    tournament = Tournament(**data)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info("Created tournament %s (%s)", tournament.id, tournament.slug)
    return tournament


@router.get("/admin/tournaments/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    team_count = session.exec(
        select(func.count(TournamentTeam.id)).where(TournamentTeam.tournament_id == tournament_id)
    ).one()
    match_count = session.exec(
        select(func.count(TournamentMatch.id)).where(TournamentMatch.tournament_id == tournament_id)
    ).one()
    return TournamentDetailResponse(
        **TournamentResponse.model_validate(tournament).model_dump(),
        team_count=team_count,
        match_count=match_count,
    )


@router.patch("/admin/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    update_data = tournament_data.model_dump(exclude_unset=True)
    if (
        "max_teams" in update_data
        and update_data["max_teams"] != tournament.max_teams
        and tournament.bracket_status == BracketStatus.GENERATED
    ):
        raise BracketLocked("max_teams cannot change after the bracket is generated.")

    if update_data.get("slug"):
        update_data["slug"] = _resolve_slug(update_data["slug"], _existing_slugs(session, exclude_id=tournament_id))

    effective_mode = update_data.get("registration_mode") or tournament.registration_mode
    if effective_mode != RegistrationMode.PAID:
        update_data["registration_fee_amount"] = None

    for field, value in update_data.items():
        setattr(tournament, field, value)

    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/admin/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its bracket and roster"""
    tournament_service.delete_tournament(session, tournament_id)
    return Response(status_code=204)
