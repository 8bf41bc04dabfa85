from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from copa_api.auth import require_admin
from copa_api.database import get_session
from copa_api.models.enums import RegistrationMode, TeamStatus
from copa_api.models.team import Team
from copa_api.services.registration_service import (
    get_registration,
    list_registrations,
    mark_registration_paid,
    register_team,
    remove_registration,
    update_team_status,
)

router = APIRouter(dependencies=[Depends(require_admin)])


class TeamCreate(BaseModel):
    name: str = Field(min_length=1)
    short_name: Optional[str] = None
    crest_url: Optional[str] = None


class TeamResponse(BaseModel):
    id: int
    name: str
    short_name: Optional[str] = None
    crest_url: Optional[str] = None

    class Config:
        from_attributes = True


class RegistrationCreate(BaseModel):
    team_id: int
    registration_type: RegistrationMode


class RegistrationUpdate(BaseModel):
    team_status: TeamStatus


class RegistrationResponse(BaseModel):
    id: int
    tournament_id: int
    team_id: int
    team_status: str
    registration_type: str
    payment_status: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    team: Optional[TeamResponse] = None

    class Config:
        from_attributes = True


@router.get("/admin/teams", response_model=List[TeamResponse])
def list_teams(session: Session = Depends(get_session)):
    return session.exec(select(Team).order_by(Team.name)).all()


@router.post("/admin/teams", response_model=TeamResponse, status_code=201)
def create_team(team_data: TeamCreate, session: Session = Depends(get_session)):
    team = Team(**team_data.model_dump())
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.get("/admin/tournaments/{tournament_id}/teams", response_model=List[RegistrationResponse])
def list_tournament_teams(tournament_id: int, session: Session = Depends(get_session)):
    """Roster: confirmed first, newest registration first within a status"""
    return [RegistrationResponse.model_validate(r) for r in list_registrations(session, tournament_id)]


@router.post("/admin/tournaments/{tournament_id}/teams", response_model=RegistrationResponse, status_code=201)
def add_tournament_team(tournament_id: int, payload: RegistrationCreate, session: Session = Depends(get_session)):
    registration = register_team(session, tournament_id, payload.team_id, payload.registration_type)
    return RegistrationResponse.model_validate(registration)


@router.patch("/admin/tournaments/{tournament_id}/teams/{team_id}", response_model=RegistrationResponse)
def update_tournament_team(
    tournament_id: int, team_id: int, payload: RegistrationUpdate, session: Session = Depends(get_session)
):
    registration = update_team_status(session, tournament_id, team_id, payload.team_status)
    return RegistrationResponse.model_validate(registration)


@router.post("/admin/tournaments/{tournament_id}/teams/{team_id}/mark-paid", response_model=RegistrationResponse)
def mark_tournament_team_paid(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    """Payment confirmation relayed from the payment provider webhook"""
    registration = get_registration(session, tournament_id, team_id)
    return RegistrationResponse.model_validate(mark_registration_paid(session, registration.id))


@router.delete("/admin/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_tournament_team(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    remove_registration(session, tournament_id, team_id)
    return Response(status_code=204)
