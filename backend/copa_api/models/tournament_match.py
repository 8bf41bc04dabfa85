from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from copa_api.models.enums import MatchSlot, MatchState

if TYPE_CHECKING:
    from copa_api.models.team import Team
    from copa_api.models.tournament import Tournament


class TournamentMatch(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "round", "match_number", name="uq_tournament_round_match"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round: int  # 1 = first round; highest = final
    match_number: int  # 1-based position within round

    # Null means "bye" (round 1) or "not yet determined" (later rounds)
    team_a_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team_b_id: Optional[int] = Field(default=None, foreign_key="team.id")

    score_a: Optional[int] = Field(default=None)
    score_b: Optional[int] = Field(default=None)
    penalties_a: Optional[int] = Field(default=None)
    penalties_b: Optional[int] = Field(default=None)
    winner_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    is_bye: bool = Field(default=False)

    # Downstream wiring: winner goes to next_match_id, slot next_slot. Null on the final.
    next_match_id: Optional[int] = Field(default=None, foreign_key="tournamentmatch.id")
    next_slot: Optional[MatchSlot] = Field(default=None, sa_column=Column(String, nullable=True))

    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
    team_a: Optional["Team"] = Relationship(sa_relationship_kwargs={"foreign_keys": "TournamentMatch.team_a_id"})
    team_b: Optional["Team"] = Relationship(sa_relationship_kwargs={"foreign_keys": "TournamentMatch.team_b_id"})

    @property
    def state(self) -> MatchState:
        if self.winner_team_id is not None:
            return MatchState.DECIDED
        if self.team_a_id is not None and self.team_b_id is not None:
            return MatchState.READY
        if self.team_a_id is not None or self.team_b_id is not None:
            return MatchState.HALF_READY
        return MatchState.EMPTY
