"""
Integration tests for the HTTP API over an in-memory store
"""

import copy
import json
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from api.server import create_app
from common.config import DEFAULTS
from store.annotations import DEFAULT_KEY, AnnotationStore
from store.ports import InMemoryPort
from towns.resolver import NearestTownResolver
from reporting.export import REPORT_HEADER


class RefusingPort(InMemoryPort):
    def write(self, key, blob):
        raise OSError("read-only filesystem")


def make_client(port=None):
    port = port if port is not None else InMemoryPort()
    ticks = iter(range(1000, 2000))
    store = AnnotationStore(NearestTownResolver(), port, clock=lambda: next(ticks))
    return TestClient(create_app(copy.deepcopy(DEFAULTS), store=store)), port


class TestReadEndpoints:
    """Test cases for health, towns and resolve"""

    def test_health(self):
        client, _ = make_client()
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["towns"] == 3
        assert body["annotations"] == 0
        assert body["storage"]["key"] == DEFAULT_KEY

    def test_towns(self):
        client, _ = make_client()
        towns = client.get("/towns").json()
        assert [t["name"] for t in towns] == ["Cape Town", "Johannesburg", "Durban"]
        assert towns[0]["child_population"] == 120000

    def test_resolve(self):
        client, _ = make_client()
        r = client.get("/resolve", params={"lat": -33.9, "lon": 18.4})
        assert r.status_code == 200
        assert r.json()["id"] == 1

    def test_resolve_rejects_non_finite(self):
        client, _ = make_client()
        r = client.get("/resolve", params={"lat": "nan", "lon": 18.4})
        assert r.status_code == 422


class TestAnnotationEndpoints:
    """Test cases for creating and listing annotations"""

    def test_post_then_list(self):
        client, port = make_client()
        r = client.post("/annotations", json={"lat": -29.9, "lon": 31.0, "note": "clinic referral"})
        assert r.status_code == 201
        assert r.json() == {"id": 1000, "townId": 3, "note": "clinic referral"}
        assert "X-Persistence-Warning" not in r.headers

        listed = client.get("/annotations").json()
        assert listed == [{"id": 1000, "townId": 3, "note": "clinic referral"}]
        assert json.loads(port.blobs[DEFAULT_KEY]) == listed

    def test_note_is_optional(self):
        client, _ = make_client()
        r = client.post("/annotations", json={"lat": -26.2, "lon": 28.0})
        assert r.status_code == 201
        assert r.json()["note"] == ""

    def test_non_finite_coordinate_rejected(self):
        client, _ = make_client()
        r = client.post(
            "/annotations",
            content='{"lat": NaN, "lon": 18.4}',
            headers={"content-type": "application/json"},
        )
        assert r.status_code == 422
        assert client.get("/annotations").json() == []

    def test_write_failure_is_reported_not_fatal(self):
        """The point is accepted for the session and flagged as unsaved"""
        client, _ = make_client(RefusingPort())
        r = client.post("/annotations", json={"lat": -33.9, "lon": 18.4})
        assert r.status_code == 201
        assert r.headers["X-Persistence-Warning"] == "not_persisted"
        assert len(client.get("/annotations").json()) == 1
        assert client.get("/health").json()["storage"]["last_write_error"]


class TestReportEndpoints:
    """Test cases for summary and export"""

    def test_summary_scenario(self):
        client, _ = make_client()
        client.post("/annotations", json={"lat": -33.9, "lon": 18.4})

        body = client.get("/summary").json()
        assert body["rates_per_1000"] == {"center": 1.5, "low": 1.0, "high": 2.0}
        cape = body["towns"][0]
        assert cape["name"] == "Cape Town"
        assert cape["observed_count"] == 1
        assert cape["expected_center"] == pytest.approx(180.0)
        assert cape["expected_low"] == pytest.approx(120.0)
        assert cape["expected_high"] == pytest.approx(240.0)
        assert cape["expected_center_text"] == "180.0"
        assert [t["observed_count"] for t in body["towns"][1:]] == [0, 0]

    def test_export_download(self):
        client, _ = make_client()
        r = client.get("/export")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert 'filename="jia_town_summary.csv"' in r.headers["content-disposition"]
        lines = r.text.split("\n")
        assert lines[0] == REPORT_HEADER
        assert lines[1:] == [
            "Cape Town,0,120000,180.00,120.00-240.00",
            "Johannesburg,0,140000,210.00,140.00-280.00",
            "Durban,0,90000,135.00,90.00-180.00",
        ]
