"""Integration tests for the assessment, scoring, forecast and report endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# GET /api/assessment/{urn}
# ---------------------------------------------------------------------------


class TestAssessmentEndpoint:
    def test_full_assessment(self, test_client: TestClient):
        response = test_client.get("/api/assessment/140001")
        assert response.status_code == 200
        data = response.json()

        assert data["school_name"] == "Oakfield House School"
        assert data["la_name"] == "Kent"
        assert data["company_name"] == "OAKFIELD EDUCATION TRUST LIMITED"
        assert data["errors"] == []
        assert data["scores"]["commissioning_demand"]["score"] == 5
        assert data["scores"]["commissioning_demand"]["confidence"] == "HIGH"
        assert data["scores"]["staffing_leadership"]["confidence"] == "MANUAL"

        result = data["result"]
        assert result["total_score"] == 41
        assert result["max_possible"] == 55
        assert result["percentage"] == pytest.approx(74.545, abs=0.01)
        assert result["decision"] == "INVESTIGATE"

    def test_isi_school(self, test_client: TestClient):
        data = test_client.get("/api/assessment/140003").json()
        ofsted = data["scores"]["ofsted_rating"]
        assert ofsted["score"] == 3
        assert ofsted["confidence"] == "MEDIUM"
        assert data["result"]["total_score"] == 26
        assert data["result"]["decision"] == "AVOID"

    def test_missing_local_authority_is_reported(self, test_client: TestClient):
        response = test_client.get("/api/assessment/140002")
        assert response.status_code == 200
        data = response.json()
        assert data["errors"] == ["Local authority 'Nowhere Shire' not found"]
        assert data["result"]["max_possible"] == 0
        assert data["result"]["decision"] == "AVOID"

    def test_not_found(self, test_client: TestClient):
        response = test_client.get("/api/assessment/999999")
        assert response.status_code == 404
        assert response.json()["detail"] == "School 999999 not found"


# ---------------------------------------------------------------------------
# POST /api/scoring
# ---------------------------------------------------------------------------


class TestScoringEndpoint:
    def test_scores(self, test_client: TestClient):
        response = test_client.post("/api/scoring", json={"scores": {"commissioning_demand": 5, "synergy": None}})
        assert response.status_code == 200
        data = response.json()
        assert data["total_score"] == 15
        assert data["max_possible"] == 15
        assert data["decision"] == "GO"
        assert len(data["criteria"]) == 9

    def test_empty(self, test_client: TestClient):
        data = test_client.post("/api/scoring", json={}).json()
        assert data["percentage"] == 0.0
        assert data["decision"] == "AVOID"

    @pytest.mark.parametrize("bad", [0, 6, "high"])
    def test_invalid_score(self, test_client: TestClient, bad):
        response = test_client.post("/api/scoring", json={"scores": {"synergy": bad}})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# POST /api/forecast
# ---------------------------------------------------------------------------


class TestForecastEndpoint:
    def test_forecast(self, test_client: TestClient):
        body = {
            "total_unplaced": 500,
            "las": [
                {"la_name": "Kent", "pool": 1},
                {"la_name": "Medway", "pool": 2},
                {"la_name": "Surrey", "pool": 3},
            ],
        }
        response = test_client.post("/api/forecast", json=body)
        assert response.status_code == 200
        data = response.json()
        assert data["addressable_demand"] == 170
        assert data["la_quality_percent"] == 67
        assert [s["capacity"] for s in data["scenarios"]] == [12, 18, 24, 30]
        assert data["scenarios"][0]["opening_fill_range"] == [20, 30]
        assert data["recommended_capacity"] == 12

    def test_total_defaults_to_sum_of_las(self, test_client: TestClient):
        body = {"las": [{"la_name": "Kent", "pool": 1, "unplaced": 300}, {"la_name": "Surrey", "pool": 2, "unplaced": 200}]}
        data = test_client.post("/api/forecast", json=body).json()
        assert data["total_unplaced"] == 500
        assert data["addressable_demand"] == 170

    def test_custom_capacities(self, test_client: TestClient):
        body = {"total_unplaced": 4000, "las": [{"la_name": "Kent", "pool": 1}], "capacities": [10, 20]}
        data = test_client.post("/api/forecast", json=body).json()
        assert data["recommended_capacity"] == 20

    @pytest.mark.parametrize("capacities", [[], [0], [-5, 10]])
    def test_invalid_capacities(self, test_client: TestClient, capacities):
        response = test_client.post("/api/forecast", json={"total_unplaced": 100, "capacities": capacities})
        assert response.status_code == 422

    def test_invalid_pool(self, test_client: TestClient):
        response = test_client.post("/api/forecast", json={"las": [{"la_name": "Kent", "pool": 5}]})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# /api/reports
# ---------------------------------------------------------------------------


class TestReportsEndpoint:
    def test_list_newest_first(self, test_client: TestClient):
        response = test_client.get("/api/reports")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [2, 1]

    def test_list_by_urn(self, test_client: TestClient):
        data = test_client.get("/api/reports", params={"urn": "140001"}).json()
        assert [r["decision"] for r in data] == ["INVESTIGATE"]

    def test_get_report(self, test_client: TestClient):
        response = test_client.get("/api/reports/2")
        assert response.status_code == 200
        data = response.json()
        assert data["school_name"] == "Hillcrest School"
        assert data["markdown"].startswith("# School Assessment Report")

    def test_get_report_not_found(self, test_client: TestClient):
        response = test_client.get("/api/reports/999")
        assert response.status_code == 404

    def test_create_report_with_override(self, test_client: TestClient):
        body = {
            "urn": "140001",
            "overrides": {"staffing_leadership": 5},
            "forecast": {"las": [{"la_name": "Kent", "pool": 2, "unplaced": 250}]},
        }
        response = test_client.post("/api/reports", json=body)
        assert response.status_code == 201
        data = response.json()

        assert data["id"] == 3
        assert data["decision"] == "GO"
        assert data["score"]["total_score"] == 51
        assert data["score"]["max_possible"] == 65
        assert data["overrides"] == {"staffing_leadership": 5}
        assert data["auto_scores"]["staffing_leadership"]["score"] is None
        assert data["la_snapshot"]["la_name"] == "Kent"
        assert data["company_snapshot"]["company_number"] == "01234567"
        assert data["forecast"]["total_unplaced"] == 250
        assert "## 4. Commissioning Forecast" in data["markdown"]

        listed = test_client.get("/api/reports", params={"urn": "140001"}).json()
        assert listed[0]["id"] == 3

    def test_override_can_clear_auto_score(self, test_client: TestClient):
        body = {"urn": "140001", "overrides": {"commissioning_demand": None}}
        data = test_client.post("/api/reports", json=body).json()
        assert data["score"]["total_score"] == 26
        assert data["score"]["max_possible"] == 40

    def test_create_report_unknown_school(self, test_client: TestClient):
        response = test_client.post("/api/reports", json={"urn": "999999"})
        assert response.status_code == 404

    def test_create_report_invalid_override(self, test_client: TestClient):
        response = test_client.post("/api/reports", json={"urn": "140001", "overrides": {"synergy": 9}})
        assert response.status_code == 422
