"""Integration tests for the FastAPI endpoints via TestClient."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from clausecloud.api.main import create_app
from clausecloud.exceptions import AnalysisError


@pytest.fixture
def client(mock_llm_service):
    with TestClient(create_app()) as c:
        yield c


def _analyze_text(client, text="Vendor terms", filename=None):
    body = {"text": text}
    if filename:
        body["filename"] = filename
    resp = client.post("/api/contracts/analyze-text", json=body)
    assert resp.status_code == 200
    return resp.json()["contractId"]


class TestHealthEndpoints:

    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "ClauseCloud API"
        assert data["endpoints"]["contracts"] == "/api/contracts"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["services"]["llm"]["provider"] == "mock"

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found", "message": "Route /api/nope not found"}


class TestAnalyzeText:

    def test_analyze_then_get(self, client, sample_contract_text, sample_analysis):
        resp = client.post("/api/contracts/analyze-text", json={"text": sample_contract_text})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["analysis"] == sample_analysis

        resp = client.get(f"/api/contracts/{data['contractId']}")
        assert resp.status_code == 200
        contract = resp.json()["contract"]
        assert contract["id"] == data["contractId"]
        assert contract["text"] == sample_contract_text
        assert contract["analysis"] == sample_analysis
        assert contract["filename"] == "Pasted Text Contract"
        assert "uploadDate" in contract

    @pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}])
    def test_text_required(self, client, mock_llm_service, body):
        resp = client.post("/api/contracts/analyze-text", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()
        mock_llm_service.analyze_contract.assert_not_awaited()

    def test_model_failure(self, client, mock_llm_service):
        mock_llm_service.analyze_contract = AsyncMock(side_effect=AnalysisError())
        resp = client.post("/api/contracts/analyze-text", json={"text": "Terms"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to analyze contract"}
        assert client.get("/api/contracts").json()["count"] == 0

    def test_debug_adds_stack(self, client, mock_llm_service, monkeypatch):
        from clausecloud.config import get_settings

        monkeypatch.setenv("DEBUG", "true")
        get_settings.cache_clear()
        mock_llm_service.analyze_contract = AsyncMock(side_effect=AnalysisError())

        resp = client.post("/api/contracts/analyze-text", json={"text": "Terms"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to analyze contract"
        assert isinstance(body["stack"], list)


class TestUpload:

    def test_text_file(self, client):
        resp = client.post(
            "/api/contracts/analyze",
            files={"contract": ("vendor.txt", b"Vendor agreement body", "text/plain")},
        )
        assert resp.status_code == 200
        contract_id = resp.json()["contractId"]

        contract = client.get(f"/api/contracts/{contract_id}").json()["contract"]
        assert contract["filename"] == "vendor.txt"
        assert contract["text"] == "Vendor agreement body"

    def test_whitespace_file_rejected(self, client, mock_llm_service):
        resp = client.post(
            "/api/contracts/analyze",
            files={"contract": ("blank.txt", b"  \n\t  ", "text/plain")},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Could not extract text from file"}
        mock_llm_service.analyze_contract.assert_not_awaited()
        assert client.get("/api/contracts").json()["count"] == 0

    def test_invalid_type(self, client):
        resp = client.post(
            "/api/contracts/analyze",
            files={"contract": ("contract.docx", b"PK\x03\x04", "application/msword")},
        )
        assert resp.status_code == 400
        assert "Invalid file type" in resp.json()["error"]

    def test_no_file(self, client):
        resp = client.post("/api/contracts/analyze")
        assert resp.status_code == 400
        assert resp.json() == {"error": "No file uploaded"}

    def test_too_large(self, client, monkeypatch):
        monkeypatch.setenv("MAX_FILE_SIZE_MB", "1")
        from clausecloud.config import get_settings

        get_settings.cache_clear()
        resp = client.post(
            "/api/contracts/analyze",
            files={"contract": ("big.txt", b"a" * (1024 * 1024 + 1), "text/plain")},
        )
        assert resp.status_code == 413

    def test_image_placeholder(self, client, mock_llm_service):
        resp = client.post(
            "/api/contracts/analyze",
            files={"contract": ("scan.png", b"\x89PNG\r\n", "image/png")},
        )
        assert resp.status_code == 200
        text, _ = mock_llm_service.analyze_contract.call_args.args
        assert "Image text extraction not implemented" in text


class TestContractManagement:

    def test_list_in_order(self, client):
        ids = [_analyze_text(client, filename=f"c{i}.txt") for i in range(3)]
        data = client.get("/api/contracts").json()
        assert data["success"] is True
        assert data["count"] == 3
        assert [c["id"] for c in data["contracts"]] == ids

    def test_get_unknown(self, client):
        resp = client.get("/api/contracts/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Contract not found"}

    def test_delete_twice(self, client):
        contract_id = _analyze_text(client)

        resp = client.delete(f"/api/contracts/{contract_id}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Contract deleted successfully"}

        assert client.delete(f"/api/contracts/{contract_id}").status_code == 404
        assert client.get(f"/api/contracts/{contract_id}").status_code == 404

    def test_search(self, client):
        aws_id = _analyze_text(client, "Cloud services", filename="AWS-Agreement.pdf")
        _analyze_text(client, "Office lease", filename="Lease.pdf")

        resp = client.get("/api/contracts/search", params={"q": "aws"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["query"] == "aws"
        assert [c["id"] for c in data["contracts"]] == [aws_id]

    def test_search_requires_query(self, client):
        assert client.get("/api/contracts/search").status_code == 400

    def test_reanalyze(self, client, mock_llm_service):
        contract_id = _analyze_text(client)
        mock_llm_service.analyze_contract = AsyncMock(return_value={"riskLevel": "high", "riskScore": 14})

        resp = client.post(f"/api/contracts/{contract_id}/reanalyze")
        assert resp.status_code == 200
        assert resp.json()["analysis"]["riskScore"] == 14
        contract = client.get(f"/api/contracts/{contract_id}").json()["contract"]
        assert contract["analysis"]["riskScore"] == 14
        assert contract["updatedAt"] is not None


class TestComparison:

    def test_compare(self, client):
        a = _analyze_text(client, "A", filename="a.pdf")
        b = _analyze_text(client, "B", filename="b.pdf")

        resp = client.post("/api/contracts/compare", json={"contractIds": [a, b]})
        assert resp.status_code == 200
        comparison = resp.json()["comparison"]
        assert [c["id"] for c in comparison["contracts"]] == [a, b]
        assert [c["name"] for c in comparison["contracts"]] == ["a.pdf", "b.pdf"]
        assert comparison["recommendation"]["reasoning"] == ["Lower risk score", "Better SLA"]

    @pytest.mark.parametrize("body", [{}, {"contractIds": []}, {"contractIds": ["x"]}])
    def test_too_few_ids(self, client, body):
        resp = client.post("/api/contracts/compare", json=body)
        assert resp.status_code == 400

    def test_unknown_ids(self, client):
        resp = client.post("/api/contracts/compare", json={"contractIds": ["x", "y"]})
        assert resp.status_code == 404
        assert resp.json() == {"error": "One or more contracts not found"}

    def test_recommendation(self, client, mock_llm_service):
        a = _analyze_text(client, "A")
        b = _analyze_text(client, "B")
        resp = client.post(
            "/api/contracts/recommendation",
            json={"contractIds": [a, b], "weights": {"cost": 0.6, "risk": 0.4}},
        )
        assert resp.status_code == 200
        assert resp.json()["recommendation"]["tradeoffs"] == "Higher annual cost"
        assert mock_llm_service.compare_contracts.call_args.kwargs["weights"] == {"cost": 0.6, "risk": 0.4}


class TestChat:

    def test_history_order(self, client, mock_llm_service):
        contract_id = _analyze_text(client)
        mock_llm_service.chat = AsyncMock(side_effect=["R1", "R2"])

        for message, reply in (("M1", "R1"), ("M2", "R2")):
            resp = client.post("/api/chat/message", json={"contractId": contract_id, "message": message})
            assert resp.status_code == 200
            assert resp.json() == {"success": True, "response": reply}

        resp = client.get(f"/api/chat/history/{contract_id}")
        assert resp.status_code == 200
        history = resp.json()["history"]
        assert [(t["role"], t["content"]) for t in history] == [
            ("user", "M1"), ("assistant", "R1"), ("user", "M2"), ("assistant", "R2"),
        ]
        assert all(t["timestamp"] for t in history)

    def test_missing_fields(self, client):
        resp = client.post("/api/chat/message", json={"message": "Hi"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Contract ID and message are required"}

    def test_unknown_contract(self, client):
        resp = client.post("/api/chat/message", json={"contractId": "nope", "message": "Hi"})
        assert resp.status_code == 404

    def test_history_unknown_contract_empty(self, client):
        resp = client.get("/api/chat/history/never-chatted")
        assert resp.status_code == 200
        assert resp.json()["history"] == []

    def test_clear_history(self, client):
        contract_id = _analyze_text(client)
        client.post("/api/chat/message", json={"contractId": contract_id, "message": "Hi"})

        resp = client.delete(f"/api/chat/history/{contract_id}")
        assert resp.status_code == 200
        assert client.get(f"/api/chat/history/{contract_id}").json()["history"] == []


class TestSettings:

    def test_get_defaults(self, client):
        resp = client.get("/api/settings")
        assert resp.status_code == 200
        assert set(resp.json()) == {"success", "settings"}
        settings = resp.json()["settings"]
        assert len(settings["redLines"]) == 7
        assert settings["company"]["name"] == "TechStartup Inc."

    def test_update_merges(self, client):
        resp = client.put("/api/settings", json={"company": {"name": "Acme", "industry": "retail", "size": "10"}})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Settings updated successfully"

        settings = client.get("/api/settings").json()["settings"]
        assert settings["company"]["name"] == "Acme"
        assert len(settings["redLines"]) == 7

    def test_update_invalid(self, client):
        resp = client.put("/api/settings", json={"redLines": 5})
        assert resp.status_code == 400

    def test_replace_red_lines(self, client):
        red_lines = [
            {"id": 1, "label": "No unlimited liability", "enabled": True},
            {"id": 2, "label": "Net 30 only", "enabled": False},
        ]
        resp = client.put("/api/settings/red-lines", json={"redLines": red_lines})
        assert resp.status_code == 200
        assert resp.json()["redLines"] == red_lines

        settings = client.get("/api/settings").json()["settings"]
        assert len(settings["redLines"]) == 2

    def test_red_lines_reach_analysis_prompt(self, client, mock_llm_service):
        client.put("/api/settings/red-lines", json={"redLines": [
            {"id": 1, "label": "No exclusivity", "enabled": True},
        ]})
        _analyze_text(client)
        _, context = mock_llm_service.analyze_contract.call_args.args
        assert context["redLines"] == ["No exclusivity"]

    def test_red_lines_not_array(self, client):
        resp = client.put("/api/settings/red-lines", json={"redLines": "none"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Red lines must be an array"}


class TestPortfolio:

    def test_metrics(self, client):
        _analyze_text(client)
        _analyze_text(client)
        resp = client.get("/api/portfolio/metrics")
        assert resp.status_code == 200
        metrics = resp.json()["metrics"]
        assert metrics == {
            "totalContracts": 2,
            "averageRisk": 7.5,
            "needsReview": 0,
            "totalValue": 500_000.0,
        }

    def test_query(self, client):
        _analyze_text(client)
        resp = client.post("/api/portfolio/query", json={"query": "Which auto-renew?"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["answer"] == "One contract auto-renews."
        assert data["relevantContracts"] == []

    def test_query_required(self, client):
        assert client.post("/api/portfolio/query", json={"query": " "}).status_code == 400


class TestRateLimit:

    @pytest.fixture
    def limited_client(self, monkeypatch, mock_llm_service):
        from clausecloud.config import get_settings

        monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "2")
        get_settings.cache_clear()
        with TestClient(create_app()) as c:
            yield c

    def test_over_limit(self, limited_client):
        assert limited_client.get("/api/contracts").status_code == 200
        assert limited_client.get("/api/settings").status_code == 200

        resp = limited_client.get("/api/contracts")
        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests from this IP, please try again later."}
        assert int(resp.headers["Retry-After"]) > 0
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_health_not_limited(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/health").status_code == 200

    def test_zero_disables(self, monkeypatch, mock_llm_service):
        from clausecloud.config import get_settings

        monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "0")
        get_settings.cache_clear()
        with TestClient(create_app()) as c:
            for _ in range(5):
                assert c.get("/api/contracts").status_code == 200


class TestSecurityHeaders:

    def test_success_response(self, client):
        resp = client.get("/api/contracts")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert resp.headers["Referrer-Policy"] == "no-referrer"

    def test_error_response(self, client):
        resp = client.get("/api/contracts/does-not-exist")
        assert resp.status_code == 404
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
