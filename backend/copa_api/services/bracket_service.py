"""
Single-elimination bracket: generation (draw + full match tree) and result recording
(winner determination + advancement into the next round).

Round 1 is the first round; the final is round log2(capacity). Match k of round r feeds
slot A (k odd) or slot B (k even) of match ceil(k/2) in round r+1. Every match row is
created by generate_bracket and nowhere else.
"""
import logging
import math
import random
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from copa_api.errors import (
    AlreadyGenerated,
    BracketError,
    InsufficientTeams,
    InternalError,
    InvalidScore,
    MatchAlreadyDecided,
    MatchNotFound,
    MatchNotReady,
    TieNotResolved,
    TournamentNotFound,
    UnsupportedBracketSize,
)
from copa_api.models.enums import (
    BracketStatus,
    MatchSlot,
    PaymentStatus,
    RegistrationMode,
    TeamStatus,
    TournamentStatus,
)
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.models.tournament_team import TournamentTeam

logger = logging.getLogger(__name__)

SUPPORTED_SIZES = (2, 4, 8, 16, 32)


# ============================================================================
# Bracket geometry
# ============================================================================


def total_rounds(capacity: int) -> int:
    """32 -> 5, 16 -> 4, ..., 2 -> 1"""
    if capacity not in SUPPORTED_SIZES:
        raise UnsupportedBracketSize(
            f"Bracket generation supports only 2, 4, 8, 16 or 32 teams. This tournament has {capacity}."
        )
    return int(math.log2(capacity))


def matches_in_round(capacity: int, round_number: int) -> int:
    return capacity >> round_number


def round_label(capacity: int, round_number: int) -> str:
    teams_in_round = capacity >> (round_number - 1)
    if teams_in_round == 2:
        return "Final"
    if teams_in_round == 4:
        return "Semifinals"
    if teams_in_round == 8:
        return "Quarterfinals"
    return f"Round of {teams_in_round}"


def next_position(round_number: int, match_number: int, rounds: int) -> Optional[Tuple[int, int, MatchSlot]]:
    """(round, match_number, slot) that the winner of this match moves into; None for the final."""
    if round_number >= rounds:
        return None
    slot = MatchSlot.A if match_number % 2 == 1 else MatchSlot.B
    return round_number + 1, (match_number + 1) // 2, slot


# ============================================================================
# Generation
# ============================================================================


def eligible_registrations(session: Session, tournament_id: int) -> List[TournamentTeam]:
    """CONFIRMED roster entries, oldest registration first. PAID registrations must be paid."""
    confirmed = session.exec(
        select(TournamentTeam)
        .where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.team_status == TeamStatus.CONFIRMED,
        )
        .order_by(TournamentTeam.created_at, TournamentTeam.id)
    ).all()
    return [
        r
        for r in confirmed
        if r.registration_type != RegistrationMode.PAID or r.payment_status == PaymentStatus.PAID
    ]


def draw_first_round(
    team_ids: List[int], capacity: int, rng: random.Random
) -> List[Tuple[Optional[int], Optional[int]]]:
    """
    Shuffle teams and lay them out over the first-round matches.

    With fewer teams than capacity, (capacity - n) randomly chosen matches get a bye:
    the team sits in slot A and slot B stays empty. Never two byes in one match.
    """
    first_round = capacity // 2
    byes = capacity - len(team_ids)
    if byes > first_round:
        raise InsufficientTeams()

    draw = list(team_ids)
    rng.shuffle(draw)
    bye_matches = set(rng.sample(range(1, first_round + 1), byes))

    pairs: List[Tuple[Optional[int], Optional[int]]] = []
    it = iter(draw)
    for match_number in range(1, first_round + 1):
        if match_number in bye_matches:
            pairs.append((next(it), None))
        else:
            pairs.append((next(it), next(it)))
    return pairs


def _check_team_count(count: int, capacity: int, allow_byes: bool) -> None:
    if allow_byes:
        minimum = max(2, capacity // 2 + 1)
        if count < minimum:
            raise InsufficientTeams(
                f"At least {minimum} confirmed teams are required for a {capacity}-team bracket. Currently: {count}."
            )
    elif count < capacity:
        raise InsufficientTeams(f"{capacity} confirmed teams are required. Currently: {count}.")


def generate_bracket(
    session: Session,
    tournament_id: int,
    allow_byes: bool = True,
    rng: Optional[random.Random] = None,
) -> Dict:
    """
    Draw the confirmed teams and create every match of the bracket in one transaction.

    Matches are inserted final-first so each one can point at the match its winner feeds.
    The tournament flips NOT_GENERATED -> GENERATED through a conditional UPDATE in the
    same transaction; a concurrent generation either sees GENERATED or loses that update
    and is rejected with AlreadyGenerated.

    Returns:
        Dict with tournament_id, bracket_status, rounds, matches_created, byes

    Raises:
        TournamentNotFound, AlreadyGenerated, UnsupportedBracketSize, InsufficientTeams,
        InternalError (store failure; nothing persisted)
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()
    if tournament.bracket_status == BracketStatus.GENERATED:
        raise AlreadyGenerated()

    capacity = tournament.max_teams
    rounds = total_rounds(capacity)

    registrations = eligible_registrations(session, tournament_id)
    if len(registrations) > capacity:
        logger.warning(
            "Tournament %s has %d eligible teams for %d slots; using the earliest registrations",
            tournament_id,
            len(registrations),
            capacity,
        )
        registrations = registrations[:capacity]
    _check_team_count(len(registrations), capacity, allow_byes)

    pairs = draw_first_round([r.team_id for r in registrations], capacity, rng or random.Random())
    new_status = (
        TournamentStatus.IN_PROGRESS
        if tournament.status in (TournamentStatus.DRAFT, TournamentStatus.PUBLISHED)
        else tournament.status
    )
    now = datetime.utcnow()

    try:
        claimed = session.execute(
            update(Tournament)
            .where(Tournament.id == tournament_id, Tournament.bracket_status == BracketStatus.NOT_GENERATED.value)
            .values(
                bracket_status=BracketStatus.GENERATED.value,
                status=TournamentStatus(new_status).value,
                updated_at=now,
            )
        )
        if claimed.rowcount == 0:
            raise AlreadyGenerated()

        by_position: Dict[Tuple[int, int], TournamentMatch] = {}
        for round_number in range(rounds, 0, -1):
            for match_number in range(1, matches_in_round(capacity, round_number) + 1):
                match = TournamentMatch(
                    tournament_id=tournament_id,
                    round=round_number,
                    match_number=match_number,
                )
                target = next_position(round_number, match_number, rounds)
                if target:
                    match.next_match_id = by_position[(target[0], target[1])].id
                    match.next_slot = target[2]
                if round_number == 1:
                    match.team_a_id, match.team_b_id = pairs[match_number - 1]
                session.add(match)
                by_position[(round_number, match_number)] = match
            session.flush()  # ids for the round below

        byes = 0
        for match_number in range(1, matches_in_round(capacity, 1) + 1):
            match = by_position[(1, match_number)]
            if match.team_b_id is not None:
                continue
            match.is_bye = True
            match.winner_team_id = match.team_a_id
            match.completed_at = now
            target = next_position(1, match_number, rounds)
            down = by_position[(target[0], target[1])]
            if target[2] == MatchSlot.A:
                down.team_a_id = match.team_a_id
            else:
                down.team_b_id = match.team_a_id
            byes += 1

        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Bracket generation for tournament %s lost a concurrent race: %s", tournament_id, exc.orig)
        raise AlreadyGenerated() from exc
    except BracketError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Bracket generation failed for tournament %s", tournament_id)
        raise InternalError() from exc

    logger.info(
        "Generated bracket for tournament %s: %d teams, %d matches, %d byes",
        tournament_id,
        len(registrations),
        len(by_position),
        byes,
    )
    return {
        "tournament_id": tournament_id,
        "bracket_status": BracketStatus.GENERATED.value,
        "rounds": rounds,
        "matches_created": len(by_position),
        "byes": byes,
    }


def clear_bracket(session: Session, tournament: Tournament) -> Tuple[int, int]:
    """
    Stage the removal of every match of the tournament without committing.

    Restores ELIMINATED roster entries to CONFIRMED, clears the champion and moves an
    IN_PROGRESS/FINISHED tournament back to PUBLISHED. The caller owns the transaction.

    Returns:
        (matches deleted, teams restored)
    """
    matches = session.exec(select(TournamentMatch).where(TournamentMatch.tournament_id == tournament.id)).all()
    eliminated = session.exec(
        select(TournamentTeam).where(
            TournamentTeam.tournament_id == tournament.id,
            TournamentTeam.team_status == TeamStatus.ELIMINATED,
        )
    ).all()

    # Break the next_match_id chain before deleting rows that reference each other
    for match in matches:
        match.next_match_id = None
        session.add(match)
    session.flush()
    for match in matches:
        session.delete(match)

    for registration in eliminated:
        registration.team_status = TeamStatus.CONFIRMED
        session.add(registration)

    tournament.bracket_status = BracketStatus.NOT_GENERATED
    tournament.champion_team_id = None
    if tournament.status in (TournamentStatus.IN_PROGRESS, TournamentStatus.FINISHED):
        tournament.status = TournamentStatus.PUBLISHED
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    return len(matches), len(eliminated)


def reset_bracket(session: Session, tournament_id: int) -> Dict:
    """Delete every match of the tournament so the bracket can be generated again. One transaction."""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    try:
        matches_deleted, teams_restored = clear_bracket(session, tournament)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Bracket reset failed for tournament %s", tournament_id)
        raise InternalError() from exc

    logger.info(
        "Reset bracket for tournament %s: %d matches deleted, %d teams restored",
        tournament_id,
        matches_deleted,
        teams_restored,
    )
    return {"matches_deleted": matches_deleted, "teams_restored": teams_restored}


# ============================================================================
# Results + advancement
# ============================================================================


def _check_score(name: str, value, required: bool) -> None:
    if value is None:
        if required:
            raise InvalidScore(f"{name} is required")
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidScore(f"{name} must be a non-negative integer")


def compute_winner(
    team_a_id: int,
    team_b_id: int,
    score_a: int,
    score_b: int,
    penalties_a: Optional[int] = None,
    penalties_b: Optional[int] = None,
) -> int:
    """Higher score wins; on a tie the penalty shoot-out decides. Raises TieNotResolved otherwise."""
    if score_a > score_b:
        return team_a_id
    if score_b > score_a:
        return team_b_id
    if penalties_a is None or penalties_b is None or penalties_a == penalties_b:
        raise TieNotResolved()
    return team_a_id if penalties_a > penalties_b else team_b_id


def record_match_result(
    session: Session,
    tournament_id: int,
    match_id: int,
    score_a: int,
    score_b: int,
    penalties_a: Optional[int] = None,
    penalties_b: Optional[int] = None,
) -> Dict:
    """
    Record a played match, decide the winner and place it in the next round.

    In one transaction:
    - scores (penalties kept only for tied scores) and winner_team_id are written through
      a conditional UPDATE (winner_team_id IS NULL), so two concurrent submissions cannot
      both succeed
    - the winner fills slot A/B of the downstream match (placement only; the downstream
      match still needs its own result)
    - the loser's roster entry becomes ELIMINATED
    - deciding the final crowns the champion and finishes the tournament

    Returns:
        Dict with match_id, winner_team_id, loser_team_id, next_match_id, next_slot,
        champion_team_id
    """
    _check_score("score_a", score_a, required=True)
    _check_score("score_b", score_b, required=True)
    _check_score("penalties_a", penalties_a, required=False)
    _check_score("penalties_b", penalties_b, required=False)

    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound()

    match = session.get(TournamentMatch, match_id)
    if not match or match.tournament_id != tournament_id:
        raise MatchNotFound()
    if match.winner_team_id is not None:
        raise MatchAlreadyDecided()
    if match.team_a_id is None or match.team_b_id is None:
        raise MatchNotReady()

    winner_id = compute_winner(match.team_a_id, match.team_b_id, score_a, score_b, penalties_a, penalties_b)
    loser_id = match.team_b_id if winner_id == match.team_a_id else match.team_a_id
    tied = score_a == score_b
    now = datetime.utcnow()

    try:
        written = session.execute(
            update(TournamentMatch)
            .where(TournamentMatch.id == match_id, TournamentMatch.winner_team_id.is_(None))
            .values(
                score_a=score_a,
                score_b=score_b,
                penalties_a=penalties_a if tied else None,
                penalties_b=penalties_b if tied else None,
                winner_team_id=winner_id,
                completed_at=now,
            )
        )
        if written.rowcount == 0:
            raise MatchAlreadyDecided()

        down = session.get(TournamentMatch, match.next_match_id) if match.next_match_id else None
        if down is not None:
            current = down.team_a_id if match.next_slot == MatchSlot.A else down.team_b_id
            if current is None:
                if match.next_slot == MatchSlot.A:
                    down.team_a_id = winner_id
                else:
                    down.team_b_id = winner_id
                session.add(down)
            elif current != winner_id:
                logger.warning(
                    "Match %s slot %s already holds team %s; not overwriting with %s",
                    down.id,
                    match.next_slot,
                    current,
                    winner_id,
                )

        loser = session.exec(
            select(TournamentTeam).where(
                TournamentTeam.tournament_id == tournament_id,
                TournamentTeam.team_id == loser_id,
            )
        ).first()
        if loser is not None:
            loser.team_status = TeamStatus.ELIMINATED
            session.add(loser)

        champion_id = None
        if match.next_match_id is None:
            champion_id = winner_id
            tournament.champion_team_id = winner_id
            tournament.status = TournamentStatus.FINISHED
            tournament.updated_at = now
            session.add(tournament)

        session.commit()
    except BracketError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Recording result failed for match %s", match_id)
        raise InternalError() from exc

    logger.info(
        "Match %s (tournament %s, round %s #%s): %s-%s, winner %s",
        match_id,
        tournament_id,
        match.round,
        match.match_number,
        score_a,
        score_b,
        winner_id,
    )
    if champion_id is not None:
        logger.info("Tournament %s finished; champion team %s", tournament_id, champion_id)

    return {
        "match_id": match_id,
        "winner_team_id": winner_id,
        "loser_team_id": loser_id,
        "next_match_id": match.next_match_id,
        "next_slot": MatchSlot(match.next_slot).value if match.next_slot else None,
        "champion_team_id": champion_id,
    }


def list_bracket(session: Session, tournament_id: int) -> List[TournamentMatch]:
    """Matches ordered by round, then match number"""
    return session.exec(
        select(TournamentMatch)
        .where(TournamentMatch.tournament_id == tournament_id)
        .order_by(TournamentMatch.round, TournamentMatch.match_number)
    ).all()
