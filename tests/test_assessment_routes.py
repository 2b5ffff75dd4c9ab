from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from luxlibris.assessment_store import ContentUnavailableError, content_store
from luxlibris.content_admin import archive_academic_year, seed_assessments
from luxlibris.main import app


@pytest.fixture
def client(database) -> TestClient:
    seed_assessments("nominee_quiz")
    seed_assessments("saint_quiz")
    return TestClient(app)


def test_list_assessments_filters_by_kind(client: TestClient) -> None:
    response = client.get("/api/assessments", params={"kind": "nominee_quiz"})
    assert response.status_code == 200
    payload = response.json()
    assert [item["id"] for item in payload] == ["nominee-001", "nominee-002"]
    assert payload[0]["question_count"] == 3
    assert payload[0]["academic_year"] == "2025-26"


def test_list_assessments_hides_archived_by_default(client: TestClient) -> None:
    archive_academic_year("nominee_quiz", "2025-26")
    assert client.get("/api/assessments", params={"kind": "nominee_quiz"}).json() == []
    archived = client.get("/api/assessments", params={"kind": "nominee_quiz", "status": "archived"})
    assert len(archived.json()) == 2


def test_get_assessment(client: TestClient) -> None:
    response = client.get("/api/assessments/saint-001")
    assert response.status_code == 200
    assert response.json()["kind"] == "saint_quiz"

    missing = client.get("/api/assessments/saint-404")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Assessment 'saint-404' does not exist."


def test_submit_and_retake(client: TestClient) -> None:
    body = {"student_id": "reader-1", "responses": {"0": 1, "1": 0, "2": 0}, "seed": 3}
    first = client.post("/api/assessments/nominee-001/submissions", json=body)
    assert first.status_code == 201
    payload = first.json()
    assert payload["times_completed"] == 1
    assert payload["result"]["outcome_key"] == "001"
    assert payload["display"]["title"] == "Your Lux Libris Literary Home is The Silver Arrow Magical Train!"

    body["responses"] = {"0": 2, "1": 3, "2": 3}
    second = client.post("/api/assessments/nominee-001/submissions", json=body)
    assert second.status_code == 201
    assert second.json()["times_completed"] == 2
    assert second.json()["result"]["outcome_key"] == "002"

    results = client.get("/api/students/reader-1/results")
    assert results.status_code == 200
    summary = results.json()
    assert summary["completed_count"] == 1
    assert summary["results"][0]["times_completed"] == 2
    assert summary["results"][0]["outcome_key"] == "002"


def test_submit_rejects_out_of_range_answers(client: TestClient) -> None:
    response = client.post(
        "/api/assessments/nominee-001/submissions",
        json={"student_id": "reader-2", "responses": {"0": 9}},
    )
    assert response.status_code == 422
    assert "Option index 9" in response.json()["detail"]


def test_submit_rejects_blank_student(client: TestClient) -> None:
    response = client.post(
        "/api/assessments/nominee-001/submissions",
        json={"student_id": "   ", "responses": {"0": 0}},
    )
    assert response.status_code == 422


def test_submit_unknown_assessment(client: TestClient) -> None:
    response = client.post(
        "/api/assessments/nominee-999/submissions",
        json={"student_id": "reader-3", "responses": {}},
    )
    assert response.status_code == 404


def test_results_reject_blank_student(client: TestClient) -> None:
    response = client.get("/api/students/%20%20/results")
    assert response.status_code == 422
    assert response.json()["detail"] == "Student id cannot be empty."


def test_unavailable_store_is_retryable(client: TestClient, monkeypatch) -> None:
    def unavailable(assessment_id: str):
        raise ContentUnavailableError("The content store is temporarily unavailable.")

    monkeypatch.setattr(content_store, "get", unavailable)
    response = client.get("/api/assessments/nominee-001")
    assert response.status_code == 503
    assert response.headers["Retry-After"] == "5"
