"""Tournament roster: registrations, status changes and the payment callback."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from copa_api.errors import (
    BracketLocked,
    DuplicateRegistration,
    InternalError,
    RegistrationNotFound,
    TeamNotFound,
    TournamentNotFound,
)
from copa_api.models.enums import BracketStatus, PaymentStatus, RegistrationMode, TeamStatus, TournamentStatus
from copa_api.models.team import Team
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.models.tournament_team import TournamentTeam

logger = logging.getLogger(__name__)

# Display order for roster listings
_STATUS_ORDER = {
    TeamStatus.CONFIRMED: 0,
    TeamStatus.APPLIED: 1,
    TeamStatus.IN_GOAL: 2,
    TeamStatus.ELIMINATED: 3,
    TeamStatus.REJECTED: 4,
}


def _check_roster_open(tournament: Tournament) -> None:
    if tournament.status == TournamentStatus.FINISHED:
        raise BracketLocked("The roster cannot change once the tournament has finished.")


def _in_bracket(session: Session, tournament_id: int, team_id: int) -> bool:
    placed = session.exec(
        select(TournamentMatch.id).where(
            TournamentMatch.tournament_id == tournament_id,
            or_(TournamentMatch.team_a_id == team_id, TournamentMatch.team_b_id == team_id),
        )
    ).first()
    return placed is not None


def list_registrations(session: Session, tournament_id: int) -> List[TournamentTeam]:
    if not session.get(Tournament, tournament_id):
        raise TournamentNotFound()
    registrations = session.exec(
        select(TournamentTeam)
        .where(TournamentTeam.tournament_id == tournament_id)
        .order_by(TournamentTeam.created_at.desc(), TournamentTeam.id.desc())
    ).all()
    return sorted(registrations, key=lambda r: _STATUS_ORDER.get(TeamStatus(r.team_status), 99))


def get_registration(session: Session, tournament_id: int, team_id: int) -> TournamentTeam:
    registration = session.exec(
        select(TournamentTeam).where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.team_id == team_id,
        )
    ).first()
    if not registration:
        raise RegistrationNotFound()
    return registration


def register_team(
    session: Session, tournament_id: int, team_id: int, registration_type: RegistrationMode
) -> TournamentTeam:
    """
    Add a team to the roster. GOAL tournaments start the team IN_GOAL, others APPLIED.
    PAID registrations wait for the payment callback (payment_status=PENDING).
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()
    _check_roster_open(tournament)
    if tournament.bracket_status == BracketStatus.GENERATED:
        raise BracketLocked("Cannot add a team after the bracket is generated.")
    if not session.get(Team, team_id):
        raise TeamNotFound()

    existing = session.exec(
        select(TournamentTeam).where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.team_id == team_id,
        )
    ).first()
    if existing:
        raise DuplicateRegistration()

    registration = TournamentTeam(
        tournament_id=tournament_id,
        team_id=team_id,
        registration_type=registration_type,
        team_status=TeamStatus.IN_GOAL if tournament.registration_mode == RegistrationMode.GOAL else TeamStatus.APPLIED,
        payment_status=PaymentStatus.PENDING if registration_type == RegistrationMode.PAID else None,
    )
    session.add(registration)
    session.commit()
    session.refresh(registration)
    logger.info("Team %s registered in tournament %s (%s)", team_id, tournament_id, registration_type)
    return registration


def update_team_status(session: Session, tournament_id: int, team_id: int, team_status: TeamStatus) -> TournamentTeam:
    """
    Manual status change. Once the bracket exists, ELIMINATED is only set by results and
    teams already drawn into the bracket keep their status.
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()
    _check_roster_open(tournament)
    registration = get_registration(session, tournament_id, team_id)

    if tournament.bracket_status == BracketStatus.GENERATED and registration.team_status != team_status:
        if TeamStatus.ELIMINATED in (registration.team_status, team_status) or _in_bracket(
            session, tournament_id, team_id
        ):
            raise BracketLocked("Cannot change the status of a team in a generated bracket.")

    registration.team_status = team_status
    session.add(registration)
    session.commit()
    session.refresh(registration)
    return registration


def remove_registration(session: Session, tournament_id: int, team_id: int) -> None:
    """Drop a team from the roster. Not allowed once the bracket exists."""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()
    if tournament.bracket_status == BracketStatus.GENERATED:
        raise BracketLocked("Cannot remove a team after the bracket is generated.")
    registration = get_registration(session, tournament_id, team_id)
    session.delete(registration)
    session.commit()


def mark_registration_paid(
    session: Session, tournament_team_id: int, paid_at: Optional[datetime] = None
) -> TournamentTeam:
    """
    Payment callback: mark a registration paid and confirm it.

    Idempotent; an already paid registration is returned unchanged. Only APPLIED
    entries are promoted to CONFIRMED (rejected/eliminated teams stay as they are).
    """
    registration = session.get(TournamentTeam, tournament_team_id)
    if not registration:
        raise RegistrationNotFound()
    if registration.payment_status == PaymentStatus.PAID:
        return registration
    _check_roster_open(session.get(Tournament, registration.tournament_id))

    try:
        registration.payment_status = PaymentStatus.PAID
        registration.paid_at = paid_at or datetime.utcnow()
        if registration.team_status == TeamStatus.APPLIED:
            registration.team_status = TeamStatus.CONFIRMED
        session.add(registration)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Marking registration %s paid failed", tournament_team_id)
        raise InternalError() from exc

    session.refresh(registration)
    logger.info(
        "Registration %s (team %s, tournament %s) marked paid",
        registration.id,
        registration.team_id,
        registration.tournament_id,
    )
    return registration
