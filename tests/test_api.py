"""
API tests through FastAPI's TestClient against snapshots in tmp_path.
"""
import inspect
import json

import pytest
from fastapi.testclient import TestClient

import db
from conftest import e2e_data, make_module_chain, make_snapshot_data
from main import app
from routers import sessions


@pytest.fixture
def client(tmp_path, monkeypatch):
    (tmp_path / "e2e.json").write_text(json.dumps(e2e_data()))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "list.json").write_text("[1, 2, 3]")
    (tmp_path / "chain.json").write_text(json.dumps(make_snapshot_data(make_module_chain(1500))))
    monkeypatch.setattr(db, "DATA_DIR", tmp_path)
    db.clear_graph_cache()
    sessions.get_sessions_store().clear()
    yield TestClient(app)
    db.clear_graph_cache()
    sessions.get_sessions_store().clear()


def new_session(client, **body) -> str:
    resp = client.post("/api/graphs/e2e/sessions", json=body or None)
    assert resp.status_code == 200
    return resp.json()["session_id"]


class TestGraphs:
    def test_list_skips_unreadable(self, client):
        resp = client.get("/api/graphs")
        assert resp.status_code == 200
        assert [g["id"] for g in resp.json()["graphs"]] == ["chain", "e2e"]

    def test_overview(self, client):
        data = client.get("/api/graphs/e2e/overview").json()
        assert data["module_count"] == 3
        assert data["object_count"] == 1
        assert data["root_modules"] == ["pkg"]
        assert data["problems"] == []

    def test_missing_graph_is_404(self, client):
        assert client.get("/api/graphs/nope/overview").status_code == 404

    @pytest.mark.parametrize("graph_id", ["broken", "list"])
    def test_bad_snapshot_is_422(self, client, graph_id):
        resp = client.get(f"/api/graphs/{graph_id}/overview")
        assert resp.status_code == 422
        assert resp.json()["detail"].startswith("Failed to load graph:")

    def test_failures_are_not_cached(self, client, tmp_path):
        assert client.get("/api/graphs/broken/overview").status_code == 422
        (tmp_path / "broken.json").write_text(json.dumps(e2e_data()))
        assert client.get("/api/graphs/broken/overview").status_code == 200


class TestStatelessViews:
    def test_layout_collapsed(self, client):
        data = client.get("/api/graphs/e2e/layout").json()
        assert [n["id"] for n in data["nodes"]] == ["module:__root__", "module:pkg"]
        assert data["dependency_edges"] == []

    def test_layout_expanded(self, client):
        data = client.get("/api/graphs/e2e/layout", params={"expanded": ["pkg"]}).json()
        [edge] = data["dependency_edges"]
        assert (edge["from"], edge["to"], edge["objects"]) == ("pkg.b", "pkg.a", ["Service (name=X)"])

    def test_search(self, client):
        data = client.get("/api/graphs/e2e/search", params={"q": "serv"}).json()
        assert data["state"] == "matches"
        assert [r["label"] for r in data["results"]] == ["Service (name=X)"]
        assert data["results"][0]["module_path"] == "pkg.a"

    def test_search_empty_query(self, client):
        data = client.get("/api/graphs/e2e/search").json()
        assert data["state"] == "empty"
        assert data["message"] == "Type to search for objects."

    def test_module_rows(self, client):
        data = client.get("/api/graphs/e2e/modules", params={"expanded": ["pkg"]}).json()
        assert [r["path"] for r in data["modules"]] == ["pkg", "pkg.a", "pkg.b"]

    def test_module_details(self, client):
        data = client.get("/api/graphs/e2e/modules/pkg.a").json()
        assert data["dependents"] == ["pkg.b"]
        assert client.get("/api/graphs/e2e/modules/__root__").json()["root"] is True
        assert client.get("/api/graphs/e2e/modules/ghost").status_code == 404

    def test_edge_summary(self, client):
        resp = client.get("/api/graphs/e2e/edges/pkg.b/pkg.a", params={"expanded": ["pkg"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["header"] == "pkg.b depends on pkg.a"
        assert data["objects"] == ["Service (name=X)"]
        assert data["extra"] == 0
        assert data["more"] == ""

    def test_edge_summary_for_hidden_edge(self, client):
        assert client.get("/api/graphs/e2e/edges/pkg.b/pkg.a").status_code == 404


class TestSessions:
    def test_create_and_get(self, client):
        sid = new_session(client)
        data = client.get(f"/api/sessions/{sid}").json()
        assert data["session_id"] == sid
        assert data["view"]["expanded"] == []
        assert data["can_go_back"] is False

    def test_create_with_initial_expansion(self, client):
        sid = new_session(client, expanded=["pkg", "ghost"])
        assert client.get(f"/api/sessions/{sid}").json()["view"]["expanded"] == ["pkg"]

    def test_toggle_shows_dependency(self, client):
        sid = new_session(client)
        data = client.post(f"/api/sessions/{sid}/toggle", json={"path": "pkg"}).json()
        assert data["changed"] is True
        assert len(data["dependency_edges"]) == 1

    def test_focus_then_back(self, client):
        sid = new_session(client)
        data = client.post(f"/api/sessions/{sid}/focus", json={"path": "pkg.a"}).json()
        assert data["view"]["selected_id"] == "module:pkg.a"
        assert data["can_go_back"] is True
        data = client.post(f"/api/sessions/{sid}/back").json()
        assert data["changed"] is True
        assert data["view"]["selected_id"] is None
        assert data["view"]["expanded"] == []
        assert data["can_go_back"] is False

    def test_focus_signature(self, client):
        sid = new_session(client)
        data = client.post(f"/api/sessions/{sid}/focus-signature", json={"signature": "Service|X|"}).json()
        assert data["changed"] is True
        assert data["view"]["selected_id"] == "module:pkg.a"

    def test_camera_select_hover(self, client):
        sid = new_session(client)
        data = client.post(f"/api/sessions/{sid}/camera", json={"x": 5, "y": 6, "zoom": 99}).json()
        assert data["view"]["camera"] == {"x": 5.0, "y": 6.0, "zoom": 2.5}
        data = client.post(f"/api/sessions/{sid}/select", json={"node_id": "module:pkg"}).json()
        assert data["view"]["selected_id"] == "module:pkg"
        data = client.post(f"/api/sessions/{sid}/hover", json={}).json()
        assert data["view"]["hovered_id"] is None

    def test_bulk_commands(self, client):
        sid = new_session(client)
        data = client.post(f"/api/sessions/{sid}/expand-all").json()
        assert data["view"]["expanded"] == ["pkg", "pkg.a", "pkg.b"]
        data = client.post(f"/api/sessions/{sid}/collapse-all").json()
        assert data["view"]["expanded"] == []
        data = client.post(f"/api/sessions/{sid}/reset-view").json()
        assert data["view"]["camera"] == {"x": 0.0, "y": 0.0, "zoom": 1.2}

    def test_push_history(self, client):
        sid = new_session(client)
        assert client.post(f"/api/sessions/{sid}/push-history").json()["changed"] is True
        assert client.post(f"/api/sessions/{sid}/push-history").json()["changed"] is False

    def test_unknown_session(self, client):
        assert client.get("/api/sessions/nope").status_code == 404
        assert client.post("/api/sessions/nope/toggle", json={"path": "pkg"}).status_code == 404

    def test_unknown_command(self, client):
        sid = new_session(client)
        assert client.post(f"/api/sessions/{sid}/teleport", json={}).status_code == 404

    def test_missing_argument(self, client):
        sid = new_session(client)
        assert client.post(f"/api/sessions/{sid}/toggle", json={}).status_code == 422

    def test_delete(self, client):
        sid = new_session(client)
        assert client.delete(f"/api/sessions/{sid}").status_code == 200
        assert client.get(f"/api/sessions/{sid}").status_code == 404

    def test_session_for_missing_graph(self, client):
        assert client.post("/api/graphs/nope/sessions").status_code == 404

    def test_session_handlers_are_coroutines(self):
        handlers = [r.endpoint for r in sessions.router.routes]
        assert handlers
        assert all(inspect.iscoroutinefunction(h) for h in handlers)


class TestSessionStoreLimit:
    def test_least_recently_used_session_is_evicted(self, client, monkeypatch):
        monkeypatch.setattr(sessions, "MAX_SESSIONS", 2)
        first = new_session(client)
        second = new_session(client)
        assert client.get(f"/api/sessions/{first}").status_code == 200
        third = new_session(client)
        assert client.get(f"/api/sessions/{second}").status_code == 404
        assert client.get(f"/api/sessions/{first}").status_code == 200
        assert client.get(f"/api/sessions/{third}").status_code == 200
        assert len(sessions.get_sessions_store()) == 2

    def test_store_below_limit_keeps_everything(self, client):
        ids = [new_session(client) for _ in range(5)]
        assert [s["id"] for s in client.get("/api/sessions").json()["sessions"]] == ids


class TestDeepChain:
    def test_expand_all_on_deep_chain(self, client):
        resp = client.post("/api/graphs/chain/sessions")
        assert resp.status_code == 200
        sid = resp.json()["session_id"]
        resp = client.post(f"/api/sessions/{sid}/expand-all")
        assert resp.status_code == 200
        assert len(resp.json()["nodes"]) == 1501
        assert client.get(f"/api/sessions/{sid}").status_code == 200

    def test_layout_of_fully_expanded_deep_chain(self, client):
        expanded = [f"n{i}" for i in range(1500)]
        resp = client.get("/api/graphs/chain/layout", params={"expanded": expanded})
        assert resp.status_code == 200
        assert len(resp.json()["nodes"]) == 1501
