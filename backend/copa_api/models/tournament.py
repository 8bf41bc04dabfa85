from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from copa_api.models.enums import BracketStatus, RegistrationMode, TournamentStatus

if TYPE_CHECKING:
    from copa_api.models.tournament_match import TournamentMatch
    from copa_api.models.tournament_team import TournamentTeam


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    season: Optional[str] = None
    region: Optional[str] = None
    max_teams: int = Field(default=16)  # bracket capacity
    registration_mode: RegistrationMode = Field(
        default=RegistrationMode.FREE, sa_column=Column(String, nullable=False)
    )
    registration_fee_amount: Optional[float] = Field(default=None)  # PAID mode only
    status: TournamentStatus = Field(default=TournamentStatus.DRAFT, sa_column=Column(String, nullable=False))
    bracket_status: BracketStatus = Field(
        default=BracketStatus.NOT_GENERATED, sa_column=Column(String, nullable=False)
    )
    champion_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    teams: List["TournamentTeam"] = Relationship(back_populates="tournament")
    matches: List["TournamentMatch"] = Relationship(back_populates="tournament")
