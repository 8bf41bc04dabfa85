from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from copa_api.models.enums import PaymentStatus, RegistrationMode, TeamStatus

if TYPE_CHECKING:
    from copa_api.models.team import Team
    from copa_api.models.tournament import Tournament


class TournamentTeam(SQLModel, table=True):
    """A team's registration in a tournament (roster entry)."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_tournament_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    team_status: TeamStatus = Field(default=TeamStatus.APPLIED, sa_column=Column(String, nullable=False))
    registration_type: RegistrationMode = Field(
        default=RegistrationMode.FREE, sa_column=Column(String, nullable=False)
    )
    # Null for FREE/GOAL registrations
    payment_status: Optional[PaymentStatus] = Field(default=None, sa_column=Column(String, nullable=True))
    paid_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="teams")
    team: "Team" = Relationship(back_populates="registrations")
