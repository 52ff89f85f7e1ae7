"""Integration tests for the registry API using FastAPI TestClient."""

from __future__ import annotations

from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# GET /api/health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_ok(self, test_client: TestClient):
        response = test_client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# GET /api/schools
# ---------------------------------------------------------------------------


class TestSchoolsSearchEndpoint:
    """Tests for the school search endpoint."""

    def test_search_by_name(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "oakfield"})
        assert response.status_code == 200
        data = response.json()
        assert [s["urn"] for s in data] == ["140001"]
        assert data[0]["la_name"] == "Kent"

    def test_search_by_urn(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "140003"})
        assert [s["name"] for s in response.json()] == ["Hillcrest School"]

    def test_results_sorted_by_name(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "school"})
        names = [s["name"] for s in response.json()]
        assert names == ["Hillcrest School", "Oakfield House School"]

    def test_limit(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "school", "limit": 1})
        assert len(response.json()) == 1

    def test_empty_search_returns_nothing(self, test_client: TestClient):
        response = test_client.get("/api/schools")
        assert response.status_code == 200
        assert response.json() == []

    def test_no_match(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "Atlantis"})
        assert response.json() == []

    def test_limit_out_of_range(self, test_client: TestClient):
        response = test_client.get("/api/schools", params={"search": "school", "limit": 0})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# GET /api/schools/{urn}
# ---------------------------------------------------------------------------


class TestSchoolDetailEndpoint:
    def test_returns_full_record(self, test_client: TestClient):
        response = test_client.get("/api/schools/140001")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Oakfield House School"
        assert data["school_capacity"] == 120
        assert data["headteacher"]["last_name"] == "Doe"
        assert data["vulnerability_score"]["total"] == 8
        assert data["pillar_details"]["pillar5"]["rural_isolation"]["points"] == 2

    def test_not_found(self, test_client: TestClient):
        response = test_client.get("/api/schools/999999")
        assert response.status_code == 404
        assert response.json()["detail"] == "School not found"


# ---------------------------------------------------------------------------
# GET /api/local-authorities
# ---------------------------------------------------------------------------


class TestLocalAuthoritiesEndpoint:
    def test_list_is_sorted(self, test_client: TestClient):
        response = test_client.get("/api/local-authorities")
        assert response.status_code == 200
        assert response.json() == ["Kent", "Surrey"]

    def test_detail(self, test_client: TestClient):
        response = test_client.get("/api/local-authorities/Kent")
        assert response.status_code == 200
        data = response.json()
        assert data["awaiting_provision"] == 250
        assert data["safety_valve_pool"] == 2

    def test_detail_not_found(self, test_client: TestClient):
        response = test_client.get("/api/local-authorities/Nowhere%20Shire")
        assert response.status_code == 404
