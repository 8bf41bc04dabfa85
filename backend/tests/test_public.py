from fastapi.testclient import TestClient
from sqlmodel import Session

from copa_api.models.enums import TournamentStatus
from tests.factories import make_tournament


def test_draft_tournament_is_hidden(client: TestClient, session: Session):
    make_tournament(session, slug="copa-secreta", status=TournamentStatus.DRAFT)

    resp = client.get("/api/public/tournaments/copa-secreta")
    assert resp.status_code == 404
    assert resp.json()["error"] == "TournamentNotFound"


def test_published_tournament_before_draw(client: TestClient, session: Session):
    make_tournament(session, max_teams=8, confirmed=5, applied=2, slug="copa-aberta")

    data = client.get("/api/public/tournaments/copa-aberta").json()
    assert data["name"] == "Copa Teste"
    assert data["bracket_status"] == "NOT_GENERATED"
    assert data["confirmed_count"] == 5
    assert len(data["teams"]) == 7
    assert data["rounds"] == []


def test_public_bracket_is_grouped_by_round(admin_client: TestClient, session: Session):
    tournament = make_tournament(session, max_teams=8, confirmed=8, slug="copa-publica")
    admin_client.post(f"/api/admin/tournaments/{tournament.id}/generate-bracket")
    # Public page needs no cookie
    admin_client.cookies.clear()

    data = admin_client.get("/api/public/tournaments/copa-publica").json()
    assert data["status"] == "IN_PROGRESS"
    assert [(r["round"], r["label"], len(r["matches"])) for r in data["rounds"]] == [
        (1, "Quarterfinals", 4),
        (2, "Semifinals", 2),
        (3, "Final", 1),
    ]
    first = data["rounds"][0]["matches"][0]
    assert first["team_a"]["name"].startswith("Team ")
    assert first["state"] == "READY"
