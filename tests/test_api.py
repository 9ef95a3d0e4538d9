"""HTTP surface tests against a synthetic manifest."""

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from api.main import app
from narrative.records import DATA_PATH_ENV


@pytest.fixture()
def client(manifest_csv, monkeypatch):
    monkeypatch.setenv(DATA_PATH_ENV, str(manifest_csv))
    return TestClient(app)


class TestSceneEndpoints:
    def test_meta_scenes(self, client):
        resp = client.get("/meta/scenes")
        assert resp.status_code == 200
        scenes = resp.json()["scenes"]
        assert [s["key"] for s in scenes] == ["overview", "class_analysis", "demographic_analysis"]
        assert scenes[0]["controls"] is None
        assert scenes[1]["controls"]["name"] == "gender"

    def test_overview(self, client):
        resp = client.get("/overview")
        assert resp.status_code == 200
        body = resp.json()
        assert body["labels"] == {"survived": "50.0%", "died": "50.0%"}

    def test_class_analysis(self, client):
        resp = client.post("/class-analysis", json={"gender_filter": "male"})
        assert resp.status_code == 200
        assert resp.json()["filters"] == {"class_filter": "all", "gender_filter": "male"}

    def test_demographics(self, client):
        resp = client.post("/demographics", json={"class_filter": "2"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["axis_max"] == 5
        assert body["indicator"]["total"] == 6

    def test_invalid_filter_rejected(self, client):
        resp = client.post("/demographics", json={"class_filter": "7"})
        assert resp.status_code == 422

    def test_scene_render_clamps_index(self, client):
        resp = client.post("/scene", json={"scene_index": 9})
        assert resp.status_code == 200
        body = resp.json()
        assert body["state"]["scene_index"] == 2
        assert body["output"]["kind"] == "render"


class TestDispatchEndpoint:
    def test_next(self, client):
        resp = client.post("/dispatch", json={"event": {"kind": "next"}})
        body = resp.json()
        assert body["state"] == {"scene_index": 1, "filters": {"class_filter": "all", "gender_filter": "all"}}
        assert body["output"]["kind"] == "render"

    def test_filter_patch(self, client):
        resp = client.post(
            "/dispatch",
            json={"state": {"scene_index": 2}, "event": {"kind": "class", "value": 2}},
        )
        body = resp.json()
        assert body["state"]["filters"]["class_filter"] == "2"
        assert body["output"]["kind"] == "patch"
        assert body["output"]["indicator"]["text"] == "6 passengers total • 2 survived (33.3%)"

    def test_noop_keeps_state(self, client):
        resp = client.post(
            "/dispatch",
            json={"state": {"scene_index": 0}, "event": {"kind": "gender", "value": "male"}},
        )
        body = resp.json()
        assert body["state"]["scene_index"] == 0
        assert body["output"]["kind"] == "noop"


class TestExport:
    def test_class_export(self, client):
        resp = client.post("/export/class_analysis", json={})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "class_analysis.csv" in resp.headers["content-disposition"]
        frame = pd.read_csv(io.StringIO(resp.text))
        assert frame["total"].tolist() == [6, 6, 8]

    def test_unknown_scene_exports_empty(self, client):
        resp = client.post("/export/nope", json={})
        assert resp.status_code == 200
        assert resp.text.strip() == ""


class TestFailures:
    def test_missing_data_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATA_PATH_ENV, str(tmp_path / "titanic3.csv"))
        resp = TestClient(app).get("/overview")
        assert resp.status_code == 500
        assert resp.json()["type"] == "DataLoadError"
