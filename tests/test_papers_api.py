import importlib
from io import BytesIO

import docx
import pytest
from fastapi.testclient import TestClient

from app.db.supabase import CandidateQuestion, Subject, SupabaseError
from app.main import app
from app.services import paper_generator


client = TestClient(app)
subjects_router_module = importlib.import_module("app.api.subjects.router")


def _bank():
    rows = []
    for part, marks, count in (("A", 2, 6), ("B", 12, 5), ("C", 16, 3)):
        for i in range(count):
            rows.append(
                CandidateQuestion(
                    id=f"{part}{i}",
                    content=f"Part {part} question {i}",
                    marks=marks,
                    part=part,
                    k_level="K2",
                    co_level="CO1",
                )
            )
    return rows


@pytest.fixture
def question_bank(monkeypatch: pytest.MonkeyPatch):
    def fake_fetch_candidates(subject_id, co_level=None):
        return [q for q in _bank() if co_level is None or q.co_level == co_level]

    monkeypatch.setattr(paper_generator, "fetch_candidates", fake_fetch_candidates)
    monkeypatch.setattr(paper_generator, "fetch_all_for_subject", lambda subject_id: _bank())


def _question_payload(qid, part="A", marks=2, **extra):
    payload = {
        "id": qid,
        "content": f"Question {qid}",
        "marks": marks,
        "part": part,
        "k_level": "K1",
        "co_level": "CO1",
    }
    payload.update(extra)
    return payload


def test_root():
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_default_template():
    response = client.get("/papers/template")

    assert response.status_code == 200
    assert response.json() == [
        {"part": "A", "marks": 2, "count": 5, "needsOr": False},
        {"part": "B", "marks": 12, "count": 2, "needsOr": True},
        {"part": "C", "marks": 16, "count": 1, "needsOr": True},
    ]


def test_auto_select_success(question_bank):
    response = client.post("/papers/auto-select", json={"subject_id": "subject-1", "test": "Unit Test 1"})

    assert response.status_code == 200
    data = response.json()
    assert data["subject_id"] == "subject-1"
    assert len(data["questions"]) == 8
    assert data["total_marks"] == 50

    drawn = [q["question_id"] for q in data["questions"]]
    drawn += [q["or_question_id"] for q in data["questions"] if q["has_or"]]
    assert len(drawn) == len(set(drawn)) == 11


def test_auto_select_custom_template(question_bank):
    payload = {
        "subject_id": "subject-1",
        "test": "Unit Test 1",
        "template": [{"part": "A", "marks": 2, "count": 3, "needsOr": True}],
    }
    response = client.post("/papers/auto-select", json=payload)

    assert response.status_code == 200
    assert all(q["has_or"] for q in response.json()["questions"])


def test_auto_select_empty_template(question_bank):
    payload = {"subject_id": "subject-1", "test": "Unit Test 1", "template": []}

    response = client.post("/papers/auto-select", json=payload)

    assert response.status_code == 400
    assert "no slots" in response.json()["detail"]


def test_auto_select_unknown_test(question_bank):
    response = client.post("/papers/auto-select", json={"subject_id": "subject-1", "test": "Model Exam"})

    assert response.status_code == 400
    assert "Model Exam" in response.json()["detail"]


def test_auto_select_no_questions(question_bank):
    response = client.post("/papers/auto-select", json={"subject_id": "subject-1", "test": "Unit Test 3"})

    assert response.status_code == 400


def test_auto_select_shortage(question_bank):
    payload = {
        "subject_id": "subject-1",
        "test": "Unit Test 1",
        "template": [{"part": "C", "marks": 16, "count": 2, "needsOr": True}],
    }
    response = client.post("/papers/auto-select", json=payload)

    assert response.status_code == 422
    assert "Not enough 16-mark questions available for Part C" in response.json()["detail"]


def test_auto_select_database_error(monkeypatch: pytest.MonkeyPatch):
    def failing_fetch(subject_id, co_level=None):
        raise SupabaseError("connection refused")

    monkeypatch.setattr(paper_generator, "fetch_candidates", failing_fetch)

    response = client.post("/papers/auto-select", json={"subject_id": "subject-1", "test": "Unit Test 1"})

    assert response.status_code == 503
    assert "Database error" in response.json()["detail"]


def test_preview_success(question_bank):
    payload = {
        "subject_id": "subject-1",
        "requirements": [
            {"part": "A", "marks": 2},
            {"part": "B", "marks": 12, "k_level": "K2", "co_level": "CO1"},
        ],
    }
    response = client.post("/papers/preview", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert [q["part"] for q in data["questions"]] == ["A", "B"]
    assert data["total_marks"] == 14


def test_preview_rejects_unknown_part(question_bank):
    payload = {"subject_id": "subject-1", "requirements": [{"part": "D", "marks": 2}]}

    response = client.post("/papers/preview", json=payload)

    assert response.status_code == 422


def test_preview_without_requirements(question_bank):
    response = client.post("/papers/preview", json={"subject_id": "subject-1", "requirements": []})

    assert response.status_code == 400


def test_generate_paper_download():
    payload = {
        "metadata": {
            "subject_code": "CS3401",
            "subject_name": "Algorithms",
            "departments": ["CSE"],
            "semesters": ["4"],
            "tests": ["UNIT TEST - 1"],
            "dates": ["APRIL 2025"],
            "regulations": ["2021"],
            "duration": "1.5",
        },
        "questions": [
            _question_payload("1"),
            _question_payload("2", part="B", marks=12, has_or=True, or_content="Alternative", or_co_level="CO2"),
            _question_payload("3", part="C", marks=16),
        ],
    }
    response = client.post("/papers/generate", json=payload)

    assert response.status_code == 200
    assert response.headers["content-type"] == paper_generator.DOCX_MEDIA_TYPE
    assert response.headers["content-disposition"] == 'attachment; filename="CS3401_question_paper.docx"'
    assert response.headers["x-total-marks"] == "30"

    document = docx.Document(BytesIO(response.content))
    assert len(document.tables) == 6


def test_generate_paper_without_questions():
    response = client.post("/papers/generate", json={"metadata": {"subject_code": "CS3401"}, "questions": []})

    assert response.status_code == 400


def test_generate_paper_handles_errors(monkeypatch: pytest.MonkeyPatch):
    def failing_serialize(tree):
        raise OSError("disk full")

    monkeypatch.setattr(paper_generator, "serialize_document", failing_serialize)

    response = client.post(
        "/papers/generate",
        json={"metadata": {"subject_code": "CS3401"}, "questions": [_question_payload("1")]},
    )

    assert response.status_code == 500
    assert "Failed to write" in response.json()["detail"]


def test_list_subjects(monkeypatch: pytest.MonkeyPatch):
    def fake_fetch_subjects():
        return [
            Subject(id="s2", subject_code="CS3402", subject_name="Databases"),
            Subject(id="s1", subject_code="CS3401", subject_name="Algorithms"),
        ]

    monkeypatch.setattr(subjects_router_module, "fetch_subjects", fake_fetch_subjects)

    response = client.get("/subjects")

    assert response.status_code == 200
    assert [s["subject_code"] for s in response.json()] == ["CS3402", "CS3401"]


def test_list_subjects_database_error(monkeypatch: pytest.MonkeyPatch):
    def failing_fetch_subjects():
        raise SupabaseError("Supabase credentials not configured")

    monkeypatch.setattr(subjects_router_module, "fetch_subjects", failing_fetch_subjects)

    response = client.get("/subjects")

    assert response.status_code == 503


def test_levels_for_test(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_fetch_levels(subject_id, co_level=None):
        calls.append((subject_id, co_level))
        return {"k_levels": ["K1", "K3"], "co_levels": ["CO2"]}

    monkeypatch.setattr(subjects_router_module, "fetch_levels", fake_fetch_levels)

    response = client.get("/subjects/s1/levels", params={"test": "UNIT TEST - 2"})

    assert response.status_code == 200
    assert calls == [("s1", "CO2")]
    assert response.json() == {
        "subject_id": "s1",
        "co_filter": "CO2",
        "k_levels": ["K1", "K3"],
        "co_levels": ["CO2"],
    }


def test_levels_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        subjects_router_module,
        "fetch_levels",
        lambda subject_id, co_level=None: {"k_levels": [], "co_levels": []},
    )

    response = client.get("/subjects/s1/levels")

    assert response.status_code == 200
    data = response.json()
    assert data["k_levels"] == ["K1", "K2", "K3", "K4", "K5", "K6"]
    assert data["co_levels"] == ["CO1", "CO2", "CO3", "CO4", "CO5"]


def test_levels_unknown_test():
    response = client.get("/subjects/s1/levels", params={"test": "Semester Exam"})

    assert response.status_code == 400


def test_setup_sql():
    response = client.get("/subjects/setup-sql")

    assert response.status_code == 200
    assert "CREATE TABLE IF NOT EXISTS questions" in response.json()["sql"]
