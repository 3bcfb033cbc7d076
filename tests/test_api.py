"""
FastAPI 엔드포인트 테스트
"""
import pytest


class TestAPIEndpoints:
    """API 엔드포인트 테스트 클래스"""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"] == "SQLiteReportStore"

    def test_config_endpoint(self, test_client):
        response = test_client.get("/api/config")
        assert response.status_code == 200

        data = response.json()
        assert data["capacity"] == 60
        assert data["prior_mu0_default"] == 0.35
        assert data["w_driver"] == 3.0
        assert data["outlier_delta"] == 0.4

    def test_crowd_now_empty_stop(self, test_client):
        """리포트가 없는 정류장은 기본 prior로 응답"""
        response = test_client.get("/api/crowd/now", params={
            "route": "ZZ", "stop": "nowhere", "at": "2025-10-19T07:35:00Z", "win": 15,
        })
        assert response.status_code == 200

        data = response.json()
        assert data["est_headcount"] == 21
        assert data["confidence"] == "low"
        assert data["level"] == 2
        assert data["remaining_capacity"] == 39
        assert data["counts"] == {"reports": 0, "driver": 0, "rider": 0}
        assert data["prior"] == {"mu0": 0.35, "k0": 2.0}
        assert data["window_min"] == 15.0
        assert data["bus_id"] is None
        lo, hi = data["headcount_ci68"]
        assert 0 <= lo <= 21 <= hi <= 60

    def test_report_then_crowd_now(self, test_client):
        """리포트 저장 후 현재 혼잡도에 반영되는지 확인"""
        for level, source in [(4, "driver"), (4, "rider"), (3, "rider")]:
            response = test_client.post("/api/report", json={
                "route": "CC", "stop": "D", "level": level, "source": source, "bus_id": "03",
            })
            assert response.status_code == 200
            body = response.json()
            assert body["ok"] is True
            assert body["saved_at"].endswith("Z")

        response = test_client.get("/api/crowd/now", params={"route": "CC", "stop": "D", "bus_id": "03"})
        assert response.status_code == 200

        data = response.json()
        assert data["counts"] == {"reports": 3, "driver": 1, "rider": 2}
        assert data["bus_id"] == "03"
        assert data["level"] >= 3
        assert data["est_headcount"] > 21

    def test_crowd_now_is_repeatable(self, test_client):
        params = {"route": "CC", "stop": "D", "at": "2025-10-19T07:35:00Z"}
        first = test_client.get("/api/crowd/now", params=params)
        second = test_client.get("/api/crowd/now", params=params)
        assert first.status_code == 200
        assert first.content == second.content

    def test_crowd_now_epoch_millis(self, test_client):
        response = test_client.get("/api/crowd/now", params={
            "route": "CC", "stop": "A", "at": "1760859300000",
        })
        assert response.status_code == 200
        assert response.json()["at"] == "2025-10-19T07:35:00.000Z"

    def test_report_defaults_to_rider(self, test_client):
        response = test_client.post("/api/report", json={"route": "CC", "stop": "E", "level": 2})
        assert response.status_code == 200

        data = test_client.get("/api/crowd/now", params={"route": "CC", "stop": "E"}).json()
        assert data["counts"]["rider"] == 1


class TestAPIErrorHandling:
    """API 에러 처리 테스트"""

    @pytest.mark.parametrize("at", [
        "soon",
        "1e20",                    # epoch ms beyond datetime range
        "0001-01-01T00:10:00Z",    # lookback would go before year 1
    ])
    def test_crowd_now_bad_instant(self, test_client, at):
        response = test_client.get("/api/crowd/now", params={"route": "CC", "stop": "A", "at": at})
        assert response.status_code == 400

    @pytest.mark.parametrize("win", [0, -5, 500])
    def test_crowd_now_bad_window(self, test_client, win):
        response = test_client.get("/api/crowd/now", params={"route": "CC", "stop": "A", "win": win})
        assert response.status_code == 422

    def test_crowd_now_missing_stop(self, test_client):
        response = test_client.get("/api/crowd/now", params={"route": "CC"})
        assert response.status_code == 422

    @pytest.mark.parametrize("body", [
        {"route": "CC", "stop": "A"},                         # level 누락
        {"route": "CC", "level": 2},                          # stop 누락
        {"route": "CC", "stop": "A", "level": 5},
        {"route": "CC", "stop": "A", "level": 0},
        {"route": "CC", "stop": "A", "level": 2, "source": "passenger"},
        {"route": "CC", "stop": "A", "level": 2, "headcount": -1},
    ])
    def test_report_validation(self, test_client, body):
        response = test_client.post("/api/report", json=body)
        assert response.status_code == 422

    def test_invalid_json(self, test_client):
        response = test_client.post(
            "/api/report",
            content="invalid json",
            headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422

    def test_404_not_found(self, test_client):
        response = test_client.get("/api/nonexistent")
        assert response.status_code == 404

    def test_method_not_allowed(self, test_client):
        response = test_client.post("/api/crowd/now")
        assert response.status_code == 405


class TestAPICORS:
    def test_cors_preflight(self, test_client):
        response = test_client.options("/api/crowd/now", headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        })
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
