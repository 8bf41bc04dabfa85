"""Recording results: winner rules, advancement into the next round, eliminations, rejections."""
import random

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from copa_api.errors import (
    InvalidScore,
    MatchAlreadyDecided,
    MatchNotFound,
    MatchNotReady,
    TieNotResolved,
    TournamentNotFound,
)
from copa_api.models.enums import MatchState, TeamStatus, TournamentStatus
from copa_api.models.tournament import Tournament
from copa_api.models.tournament_match import TournamentMatch
from copa_api.services.bracket_service import compute_winner, generate_bracket, record_match_result
from tests.conftest import test_engine
from tests.factories import all_matches, make_tournament, match_at, registration


@pytest.fixture
def bracket(session: Session):
    """Generated 8-team bracket"""
    tournament = make_tournament(session, max_teams=8, confirmed=8)
    generate_bracket(session, tournament.id, rng=random.Random(99))
    return tournament.id


def _snapshot(session: Session, tournament_id: int):
    session.expire_all()
    matches = [
        (m.id, m.team_a_id, m.team_b_id, m.score_a, m.score_b, m.penalties_a, m.penalties_b, m.winner_team_id)
        for m in all_matches(session, tournament_id)
    ]
    tournament = session.get(Tournament, tournament_id)
    roster = sorted((r.team_id, r.team_status) for r in tournament.teams)
    return matches, tournament.status, tournament.champion_team_id, roster


def test_higher_score_wins_and_advances_to_slot_a(session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    team_a, team_b = m1.team_a_id, m1.team_b_id

    result = record_match_result(session, bracket, m1.id, score_a=3, score_b=1)

    session.expire_all()
    m1 = match_at(session, bracket, 1, 1)
    assert result["winner_team_id"] == team_a
    assert result["loser_team_id"] == team_b
    assert m1.winner_team_id == team_a
    assert (m1.score_a, m1.score_b) == (3, 1)
    assert m1.state == MatchState.DECIDED
    assert m1.completed_at is not None

    down = match_at(session, bracket, 2, 1)
    assert down.team_a_id == team_a
    assert down.team_b_id is None
    assert down.state == MatchState.HALF_READY
    assert result["next_match_id"] == down.id
    assert result["next_slot"] == "A"

    assert registration(session, bracket, team_b).team_status == TeamStatus.ELIMINATED
    assert registration(session, bracket, team_a).team_status == TeamStatus.CONFIRMED


def test_even_match_feeds_slot_b_and_sibling_results_make_next_match_ready(session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    m2 = match_at(session, bracket, 1, 2)
    winner_1, winner_2 = m1.team_a_id, m2.team_b_id

    record_match_result(session, bracket, m1.id, score_a=2, score_b=0)
    record_match_result(session, bracket, m2.id, score_a=0, score_b=1)

    session.expire_all()
    down = match_at(session, bracket, 2, 1)
    assert down.team_a_id == winner_1
    assert down.team_b_id == winner_2
    # Placement only: the semifinal still waits for its own result
    assert down.state == MatchState.READY
    assert down.winner_team_id is None


def test_tie_without_penalties_is_rejected_without_writes(session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    before = _snapshot(session, bracket)

    with pytest.raises(TieNotResolved):
        record_match_result(session, bracket, m1.id, score_a=2, score_b=2)
    with pytest.raises(TieNotResolved):
        record_match_result(session, bracket, m1.id, score_a=2, score_b=2, penalties_a=5, penalties_b=5)

    assert _snapshot(session, bracket) == before


def test_tie_decided_on_penalties(session: Session, bracket: int):
    m3 = match_at(session, bracket, 1, 3)
    team_a, team_b = m3.team_a_id, m3.team_b_id

    record_match_result(session, bracket, m3.id, score_a=1, score_b=1, penalties_a=4, penalties_b=3)

    session.expire_all()
    m3 = match_at(session, bracket, 1, 3)
    assert m3.winner_team_id == team_a
    assert (m3.penalties_a, m3.penalties_b) == (4, 3)
    assert match_at(session, bracket, 2, 2).team_a_id == team_a
    assert registration(session, bracket, team_b).team_status == TeamStatus.ELIMINATED


def test_penalties_are_dropped_when_scores_differ(session: Session, bracket: int):
    m4 = match_at(session, bracket, 1, 4)

    record_match_result(session, bracket, m4.id, score_a=0, score_b=2, penalties_a=5, penalties_b=4)

    session.expire_all()
    m4 = match_at(session, bracket, 1, 4)
    assert m4.winner_team_id == m4.team_b_id
    assert m4.penalties_a is None and m4.penalties_b is None
    assert match_at(session, bracket, 2, 2).team_b_id == m4.team_b_id


def test_second_result_for_decided_match_is_rejected(session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    team_a = m1.team_a_id
    record_match_result(session, bracket, m1.id, score_a=3, score_b=1)
    before = _snapshot(session, bracket)

    with pytest.raises(MatchAlreadyDecided):
        record_match_result(session, bracket, m1.id, score_a=0, score_b=5)

    assert _snapshot(session, bracket) == before
    assert match_at(session, bracket, 1, 1).winner_team_id == team_a


def test_match_waiting_for_teams_is_not_ready(session: Session, bracket: int):
    final = match_at(session, bracket, 3, 1)
    with pytest.raises(MatchNotReady):
        record_match_result(session, bracket, final.id, score_a=1, score_b=0)

    # Half-filled semifinal is still not ready
    record_match_result(session, bracket, match_at(session, bracket, 1, 1).id, score_a=1, score_b=0)
    semi = match_at(session, bracket, 2, 1)
    with pytest.raises(MatchNotReady):
        record_match_result(session, bracket, semi.id, score_a=1, score_b=0)


@pytest.mark.parametrize(
    "scores",
    [
        {"score_a": -1, "score_b": 0},
        {"score_a": 1, "score_b": None},
        {"score_a": 1.5, "score_b": 0},
        {"score_a": True, "score_b": 0},
        {"score_a": 1, "score_b": 1, "penalties_a": -3, "penalties_b": 2},
    ],
)
def test_invalid_scores_rejected_before_any_write(session: Session, bracket: int, scores):
    m1 = match_at(session, bracket, 1, 1)
    before = _snapshot(session, bracket)

    with pytest.raises(InvalidScore):
        record_match_result(session, bracket, m1.id, **scores)

    assert _snapshot(session, bracket) == before


def test_unknown_tournament_or_foreign_match(session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    with pytest.raises(TournamentNotFound):
        record_match_result(session, 9999, m1.id, score_a=1, score_b=0)
    with pytest.raises(MatchNotFound):
        record_match_result(session, bracket, 9999, score_a=1, score_b=0)

    other = make_tournament(session, max_teams=2, confirmed=2, slug="outra-copa")
    with pytest.raises(MatchNotFound):
        record_match_result(session, other.id, m1.id, score_a=1, score_b=0)


def test_playing_out_the_bracket_crowns_champion(session: Session, bracket: int):
    # Team in slot A always wins
    for round_number, count in ((1, 4), (2, 2), (3, 1)):
        for k in range(1, count + 1):
            m = match_at(session, bracket, round_number, k)
            outcome = record_match_result(session, bracket, m.id, score_a=2, score_b=1)
        session.expire_all()

    final = match_at(session, bracket, 3, 1)
    assert outcome["champion_team_id"] == final.team_a_id
    assert outcome["next_match_id"] is None

    tournament = session.get(Tournament, bracket)
    assert tournament.champion_team_id == final.team_a_id
    assert tournament.status == TournamentStatus.FINISHED

    statuses = [r.team_status for r in tournament.teams]
    assert statuses.count(TeamStatus.ELIMINATED) == 7
    assert statuses.count(TeamStatus.CONFIRMED) == 1
    assert all(m.state == MatchState.DECIDED for m in all_matches(session, bracket))


def test_bye_bracket_plays_through(session: Session):
    tournament = make_tournament(session, max_teams=4, confirmed=3)
    generate_bracket(session, tournament.id, rng=random.Random(8))

    playable = [m for m in all_matches(session, tournament.id) if m.round == 1 and not m.is_bye]
    assert len(playable) == 1
    record_match_result(session, tournament.id, playable[0].id, score_a=0, score_b=4)

    session.expire_all()
    final = match_at(session, tournament.id, 2, 1)
    assert final.state == MatchState.READY
    outcome = record_match_result(session, tournament.id, final.id, score_a=1, score_b=0)
    assert outcome["champion_team_id"] == final.team_a_id


def test_compute_winner_rules():
    assert compute_winner(1, 2, 3, 1) == 1
    assert compute_winner(1, 2, 0, 2) == 2
    assert compute_winner(1, 2, 1, 1, 3, 4) == 2
    with pytest.raises(TieNotResolved):
        compute_winner(1, 2, 0, 0)
    with pytest.raises(TieNotResolved):
        compute_winner(1, 2, 0, 0, 3, None)


# ============================================================================
# HTTP
# ============================================================================


def test_patch_result_endpoint(admin_client: TestClient, session: Session, bracket: int):
    m1 = match_at(session, bracket, 1, 1)
    team_a, team_b = m1.team_a_id, m1.team_b_id

    resp = admin_client.patch(
        f"/api/admin/tournaments/{bracket}/matches/{m1.id}",
        json={"score_a": 3, "score_b": 1},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["match"]["winner_team_id"] == team_a
    assert data["match"]["state"] == "DECIDED"
    assert data["loser_team_id"] == team_b
    assert data["champion_team_id"] is None

    again = admin_client.patch(
        f"/api/admin/tournaments/{bracket}/matches/{m1.id}",
        json={"score_a": 0, "score_b": 1},
    )
    assert again.status_code == 400
    assert again.json()["error"] == "MatchAlreadyDecided"


@pytest.mark.parametrize(
    "body,error",
    [
        ({"score_a": 2, "score_b": 2}, "TieNotResolved"),
        ({"score_a": -1, "score_b": 2}, "InvalidScore"),
        ({"score_a": 1.5, "score_b": 2}, "InvalidScore"),
        ({"score_a": "2", "score_b": 1}, "InvalidScore"),
        ({"score_b": 2}, "InvalidScore"),
    ],
)
def test_patch_result_rejections(admin_client: TestClient, session: Session, bracket: int, body, error):
    m1 = match_at(session, bracket, 1, 1)
    resp = admin_client.patch(f"/api/admin/tournaments/{bracket}/matches/{m1.id}", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == error

    session.expire_all()
    assert match_at(session, bracket, 1, 1).winner_team_id is None


def test_patch_result_not_found(admin_client: TestClient, session: Session, bracket: int):
    resp = admin_client.patch(f"/api/admin/tournaments/{bracket}/matches/9999", json={"score_a": 1, "score_b": 0})
    assert resp.status_code == 404
    assert resp.json()["error"] == "MatchNotFound"


def test_stale_concurrent_submission_loses(session: Session, bracket: int):
    """Two admins load the same match; the second commit finds the winner already set."""
    m1 = match_at(session, bracket, 1, 1)
    team_a = m1.team_a_id

    with Session(test_engine) as other:
        stale = other.get(TournamentMatch, m1.id)
        assert stale.winner_team_id is None

        record_match_result(session, bracket, m1.id, score_a=3, score_b=1)

        # Identity map still shows the match as undecided, so only the guarded UPDATE can catch it
        assert stale.winner_team_id is None
        with pytest.raises(MatchAlreadyDecided):
            record_match_result(other, bracket, m1.id, score_a=0, score_b=2)

    session.expire_all()
    m1 = match_at(session, bracket, 1, 1)
    assert m1.winner_team_id == team_a
    assert (m1.score_a, m1.score_b) == (3, 1)
    assert match_at(session, bracket, 2, 1).team_a_id == team_a
