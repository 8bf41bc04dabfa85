"""Tournament-level operations that span the bracket and the roster."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from copa_api.errors import InternalError, TournamentNotFound
from copa_api.models.enums import BracketStatus
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_team import TournamentTeam
from copa_api.services.bracket_service import clear_bracket

logger = logging.getLogger(__name__)


def delete_tournament(session: Session, tournament_id: int) -> None:
    """Delete a tournament with its bracket and roster in one transaction."""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    try:
        if tournament.bracket_status == BracketStatus.GENERATED:
            clear_bracket(session, tournament)
        for registration in session.exec(
            select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id)
        ).all():
            session.delete(registration)
        session.flush()
        session.delete(tournament)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Deleting tournament %s failed", tournament_id)
        raise InternalError() from exc

    logger.info("Deleted tournament %s", tournament_id)
