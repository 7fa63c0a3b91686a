"""
Integration Tests for API Endpoints

1. Session lifecycle
2. Full guided workflow over HTTP
3. Error responses
"""

import base64
import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from statscope.api.app import app
from statscope.config import settings

pytestmark = pytest.mark.integration

API = settings.api_prefix


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_id(client):
    response = client.post(f"{API}/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def upload(client, session_id, df, filename="data.csv"):
    payload = df.to_csv(index=False).encode()
    return client.post(
        f"{API}/sessions/{session_id}/dataset",
        files={"file": (filename, payload, "text/csv")},
    )


class TestHealthEndpoints:

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == settings.app_name

    def test_request_id_header(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestSessions:

    def test_create_and_get(self, client, session_id):
        data = client.get(f"{API}/sessions/{session_id}").json()

        assert data["step"] == "UPLOAD"
        assert data["loaded"] is False

    def test_unknown_session(self, client):
        response = client.get(f"{API}/sessions/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_delete(self, client, session_id):
        assert client.delete(f"{API}/sessions/{session_id}").status_code == 204
        assert client.get(f"{API}/sessions/{session_id}").status_code == 404
        assert client.delete(f"{API}/sessions/{session_id}").status_code == 404


class TestUpload:

    def test_csv_upload(self, client, session_id, missing_frame):
        response = upload(client, session_id, missing_frame)

        assert response.status_code == 200
        body = response.json()
        assert body["session"]["step"] == "VARIABLE_SELECTION"
        assert body["dataset"]["rows"] == 5
        assert body["dataset"]["columns"] == ["y", "x1", "x2", "label"]

    def test_excel_upload(self, client, session_id, scenario_frame):
        buffer = io.BytesIO()
        scenario_frame.to_excel(buffer, index=False)
        response = client.post(
            f"{API}/sessions/{session_id}/dataset",
            files={"file": ("data.xlsx", buffer.getvalue(), "application/octet-stream")},
        )

        assert response.status_code == 200
        assert response.json()["dataset"]["rows"] == 5

    def test_malformed_upload(self, client, session_id):
        response = client.post(
            f"{API}/sessions/{session_id}/dataset",
            files={"file": ("data.csv", b"", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "PARSE_ERROR"
        assert client.get(f"{API}/sessions/{session_id}").json()["step"] == "UPLOAD"

    def test_unsupported_extension(self, client, session_id):
        response = client.post(
            f"{API}/sessions/{session_id}/dataset",
            files={"file": ("notes.txt", b"a\n1\n", "text/plain")},
        )
        assert response.status_code == 400

    def test_summary_lists_numeric_columns(self, client, session_id, missing_frame):
        upload(client, session_id, missing_frame)

        data = client.get(f"{API}/sessions/{session_id}/summary").json()

        assert data["numeric_columns"] == ["y", "x1", "x2"]
        label = next(s for s in data["summary"] if s["name"] == "label")
        assert label["type"] == "non-numeric"


class TestWorkflow:

    def test_guided_workflow(self, client, session_id, missing_frame):
        base = f"{API}/sessions/{session_id}"
        upload(client, session_id, missing_frame)

        # variable selection
        response = client.post(f"{base}/variables", json={"dependent": "y", "independents": ["x1", "x2"]})
        assert response.status_code == 200
        assert response.json()["session"]["step"] == "QUALITY"
        assert response.json()["dataset"]["columns"] == ["y", "x1", "x2"]

        # quality
        issues = client.get(f"{base}/issues").json()
        assert issues["count"] == 2
        assert issues["issues"][0] == {"row": 1, "column": "x1", "issue": "missing", "value": None}

        blocked = client.post(f"{base}/advance")
        assert blocked.status_code == 422
        assert blocked.json()["error"] == "STEP_PRECONDITION"

        edit = client.patch(f"{base}/cells", json={"row": 1, "column": "x1", "value": "oops"})
        assert edit.status_code == 200
        assert edit.json()["applied"] is False

        strict = client.patch(
            f"{base}/cells", json={"row": 1, "column": "x1", "value": "oops", "strict": True}
        )
        assert strict.status_code == 422
        assert strict.json()["error"] == "INVALID_NUMERIC_INPUT"

        edit = client.patch(f"{base}/cells", json={"row": 1, "column": "x1", "value": "20"})
        assert edit.json()["applied"] is True

        remaining = client.post(f"{base}/remediation", json={"action": "impute_median", "columns": ["y"]})
        assert remaining.json()["count"] == 0

        # outliers
        assert client.post(f"{base}/advance").json()["step"] == "OUTLIERS"
        method = client.put(f"{base}/outliers/method", json={"method": "MODIFIED_Z"})
        assert method.json() == {"method": "MODIFIED_Z"}
        scan = client.get(f"{base}/outliers").json()
        assert scan["method"] == "MODIFIED_Z"

        treated = client.post(
            f"{base}/outliers/x1/treatment",
            json={"action": "ignore", "expected_version": scan["version"]},
        )
        assert treated.status_code == 200
        stale = client.post(
            f"{base}/outliers/x1/treatment",
            json={"action": "delete", "expected_version": scan["version"]},
        )
        assert stale.status_code == 409
        assert stale.json()["error"] == "STALE_RESULT"

        # univariate
        assert client.post(f"{base}/advance").json()["step"] == "UNIVARIATE"
        uni = client.get(f"{base}/univariate/y", params={"reference": "t", "render": True}).json()
        assert uni["n"] == 5
        assert uni["qq"]["reference"] == "t"
        png = base64.b64decode(uni["figures"]["box"]["png_base64"])
        assert png.startswith(b"\x89PNG")

        # bivariate
        assert client.post(f"{base}/advance").json()["step"] == "BIVARIATE"
        bi = client.get(f"{base}/bivariate/x1", params={"lowess": True, "degree": 2}).json()
        assert bi["y"] == "y"
        assert [f["kind"] for f in bi["fits"]] == ["line", "lowess", "polynomial"]
        bad_degree = client.get(f"{base}/bivariate/x1", params={"degree": 50})
        assert bad_degree.status_code == 422

        # correlation
        assert client.post(f"{base}/advance").json()["step"] == "CORRELATION"
        corr = client.get(f"{base}/correlations", params={"render": True}).json()
        assert [row["variable"] for row in corr["table"]] == ["x1", "x2"]
        assert len(corr["table"][0]["pearson"]["ci"]) == 2
        assert set(corr["figures"]) == {"pearson", "spearman", "kendall"}

        report = client.get(f"{base}/report")
        assert report.status_code == 200
        assert report.headers["content-type"] == "application/pdf"
        assert report.content.startswith(b"%PDF")

    def test_step_gating_over_http(self, client, session_id, scenario_frame):
        base = f"{API}/sessions/{session_id}"
        upload(client, session_id, scenario_frame)

        response = client.get(f"{base}/correlations")
        assert response.status_code == 422
        assert response.json()["error"] == "STEP_PRECONDITION"

    def test_request_validation(self, client, session_id, scenario_frame):
        upload(client, session_id, scenario_frame)

        response = client.post(
            f"{API}/sessions/{session_id}/variables",
            json={"dependent": "A", "independents": []},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_scenario_over_http(self, client, session_id):
        base = f"{API}/sessions/{session_id}"
        upload(client, session_id, pd.DataFrame({"A": [1, 2, 3, 4, 100], "B": [2, 4, 6, 8, 10]}))
        client.post(f"{base}/variables", json={"dependent": "A", "independents": ["B"]})
        client.post(f"{base}/advance")

        scan = client.get(f"{base}/outliers").json()
        assert scan["outliers"]["A"]["indices"] == [4]
        assert scan["outliers"]["A"]["upper"] == pytest.approx(7.0)

        after = client.post(f"{base}/outliers/A/treatment", json={"action": "delete"}).json()
        assert after["outliers"] == {}

        for _ in range(3):
            client.post(f"{base}/advance")
        (row,) = client.get(f"{base}/correlations").json()["table"]
        assert row["n"] == 4
        assert row["pearson"]["r"] == pytest.approx(1.0)
        assert row["pearson"]["p"] < 0.001
