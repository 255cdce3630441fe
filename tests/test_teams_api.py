import json

from dreamxi.services import team_service
from dreamxi.services.team_store import StoreError


def _submit(client, team):
    return client.post("/api/teams", json=team)


def test_ping(client):
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.text == "pong"


def test_health(client):
    assert client.get("/api/health/live").json() == {"status": "ok"}
    assert client.get("/api/health/ready").json() == {"status": "ready", "store": "file"}


def test_submit_valid_team(client, valid_team, data_dir):
    response = _submit(client, valid_team)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Team saved successfully"
    team = body["team"]
    assert team["submitterName"] == "Sam"
    assert team["totalPlayers"] == 11
    assert team["id"]
    assert team["createdAt"]

    on_disk = json.loads((data_dir / "team.json").read_text(encoding="utf-8"))
    assert len(on_disk) == 1
    assert on_disk[0]["id"] == team["id"]


def test_submit_invalid_team_lists_defects(client, data_dir):
    response = _submit(client, {"submitterName": " ", "defenders": ["A"], "midfielders": ["B"], "forwards": []})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid team"
    assert body["details"] == [
        "submitter name is required",
        "goalkeeper is required",
        "defenders must number between 3 and 5 (got 1)",
        "midfielders must number between 3 and 5 (got 1)",
        "forwards must number between 1 and 3 (got 0)",
    ]
    assert not (data_dir / "team.json").exists()


def test_submit_without_body_is_rejected(client):
    response = client.post("/api/teams")
    assert response.status_code == 400
    assert len(response.json()["details"]) == 5


def test_submit_with_formation(client, valid_team):
    valid_team["formation"] = "4-3-3"
    response = _submit(client, valid_team)
    assert response.status_code == 400
    assert response.json()["details"] == [
        "formation 4-3-3 requires exactly 3 midfielders (got 4)",
        "formation 4-3-3 requires exactly 3 forwards (got 2)",
    ]

    valid_team["formation"] = "4-4-2"
    response = _submit(client, valid_team)
    assert response.status_code == 201
    assert response.json()["team"]["formation"] == "4-4-2"


def test_strict_formation_setting(client, valid_team, monkeypatch):
    from dreamxi.core.config import get_settings

    valid_team["formation"] = "4-4"
    assert _submit(client, valid_team).status_code == 201

    monkeypatch.setenv("DREAMXI_STRICT_FORMATION", "true")
    get_settings.cache_clear()
    response = _submit(client, valid_team)
    assert response.status_code == 400
    assert response.json()["details"] == ["formation must be one of 4-4-2, 4-3-3, 3-5-2, 4-2-3-1"]
    assert client.get("/api/teams/rules").json()["strictFormation"] is True


def test_list_order_and_filters(client, valid_team):
    assert client.get("/api/teams").json() == []

    for name in ("Ann", "Bob", "Cat"):
        _submit(client, {**valid_team, "submitterName": name})
    _submit(client, {**valid_team, "submitterName": "Dan", "formation": "4-4-2", "forwards": ["Haaland", "Nunez"]})

    oldest = [t["submitterName"] for t in client.get("/api/teams").json()]
    assert oldest == ["Ann", "Bob", "Cat", "Dan"]
    newest = [t["submitterName"] for t in client.get("/api/teams", params={"order": "newest"}).json()]
    assert newest == ["Dan", "Cat", "Bob", "Ann"]

    by_formation = client.get("/api/teams", params={"formation": "4-4-2"}).json()
    assert [t["submitterName"] for t in by_formation] == ["Dan"]
    by_player = client.get("/api/teams", params={"player": "haaland"}).json()
    assert [t["submitterName"] for t in by_player] == ["Dan"]

    assert client.get("/api/teams", params={"order": "sideways"}).status_code == 422


def test_get_and_delete_team(client, valid_team):
    team_id = _submit(client, valid_team).json()["team"]["id"]

    response = client.get(f"/api/teams/{team_id}")
    assert response.status_code == 200
    assert response.json()["goalkeeper"] == "Alisson"

    assert client.delete(f"/api/teams/{team_id}").status_code == 204
    assert client.get(f"/api/teams/{team_id}").status_code == 404
    assert client.delete(f"/api/teams/{team_id}").status_code == 404


def test_summary(client, valid_team):
    empty = client.get("/api/teams/summary").json()
    assert empty["total"] == 0
    assert empty["formations"] == {}
    assert empty["topPlayers"]["goalkeeper"] == []

    _submit(client, valid_team)
    _submit(client, {**valid_team, "goalkeeper": "Raya", "formation": "4-4-2"})
    _submit(client, {**valid_team, "goalkeeper": "Raya", "forwards": ["Salah"]})

    summary = client.get("/api/teams/summary").json()
    assert summary["total"] == 3
    assert summary["formations"] == {"4-4-2": 1, "none": 2}
    assert summary["topPlayers"]["goalkeeper"] == [
        {"player": "Raya", "picks": 2},
        {"player": "Alisson", "picks": 1},
    ]
    assert summary["topPlayers"]["forwards"][0] == {"player": "Salah", "picks": 3}
    assert len(summary["topPlayers"]["defenders"]) == 4


def test_rules_endpoint(client):
    body = client.get("/api/teams/rules").json()
    assert body["generic"]["defenders"] == {"min": 3, "max": 5}
    assert body["formations"]["3-5-2"] == {"defenders": 3, "midfielders": 5, "forwards": 2}


class BrokenStore:
    backend = "broken"

    def add(self, lineup):
        raise StoreError("disk full")

    def all(self):
        raise StoreError("disk unreadable")


def test_store_failures_become_500(client, valid_team, monkeypatch):
    monkeypatch.setattr(team_service, "get_store", lambda: BrokenStore())

    response = _submit(client, valid_team)
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to save team", "error": "disk full"}

    response = client.get("/api/teams")
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to load teams"

    # Rejections never touch the store
    assert _submit(client, {}).status_code == 400


def test_static_form_is_served(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Dream XI" in response.text


def test_unknown_id_with_dots_is_not_found(client):
    assert client.get("/api/teams/a.b").status_code == 404
    assert client.delete("/api/teams/a.b").status_code == 404


def test_team_without_timestamp_is_listed_and_summarized(client, valid_team, data_dir):
    (data_dir / "team.json").write_text(json.dumps([valid_team]), encoding="utf-8")

    teams = client.get("/api/teams").json()
    assert [t["id"] for t in teams] == ["legacy-0"]
    assert teams[0]["createdAt"] is None
    assert client.get("/api/teams/legacy-0").status_code == 200
    assert client.get("/api/teams/summary").json()["total"] == 1


def test_form_script_only_uses_own_formation_keys(client):
    script = client.get("/app.js").text
    assert "Object.hasOwn(RULES.formations, team.formation)" in script
