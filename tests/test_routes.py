"""
Tests for the HTTP API
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from papernotes.app import app
from papernotes.dependencies import get_notes_engine, get_qa_engine
from papernotes.errors import InvalidPaperSourceError, LLMError, PaperNotFoundError, StorageError
from papernotes.models import Note, QAResponse
from tests.conftest import PAPER_URL


@pytest.fixture
def notes_engine():
    engine = Mock()
    engine.take_notes.return_value = [Note(note="Attention weighs tokens.", page_numbers=[1, 2])]
    return engine


@pytest.fixture
def qa_engine():
    engine = Mock()
    engine.answer_question.return_value = [QAResponse(answer="Yes.", followup_questions=["Why?"])]
    return engine


@pytest.fixture
def client(notes_engine, qa_engine):
    app.dependency_overrides[get_notes_engine] = lambda: notes_engine
    app.dependency_overrides[get_qa_engine] = lambda: qa_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestTakeNotesRoute:

    def test_returns_notes_with_camel_case_fields(self, client, notes_engine):
        response = client.post("/take-notes", json={
            "paperUrl": PAPER_URL,
            "paperName": "Attention Is All You Need",
            "pagesToDelete": "1, 3",
        })

        assert response.status_code == 200
        assert response.json() == [{"note": "Attention weighs tokens.", "pageNumbers": [1, 2]}]
        notes_engine.take_notes.assert_called_once_with(PAPER_URL, "Attention Is All You Need", [1, 3])

    def test_pages_to_delete_is_optional(self, client, notes_engine):
        response = client.post("/take-notes", json={"paperUrl": PAPER_URL, "paperName": "Paper"})

        assert response.status_code == 200
        notes_engine.take_notes.assert_called_once_with(PAPER_URL, "Paper", [])

    def test_missing_paper_name(self, client):
        response = client.post("/take-notes", json={"paperUrl": PAPER_URL})
        assert response.status_code == 422

    def test_invalid_pages(self, client, notes_engine):
        response = client.post("/take-notes", json={
            "paperUrl": PAPER_URL, "paperName": "Paper", "pagesToDelete": "one,two",
        })
        assert response.status_code == 400
        notes_engine.take_notes.assert_not_called()

    def test_invalid_source(self, client, notes_engine):
        notes_engine.take_notes.side_effect = InvalidPaperSourceError("Invalid PDF or file path.")

        response = client.post("/take-notes", json={"paperUrl": "http://localhost/x.pdf", "paperName": "Paper"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid PDF or file path."

    def test_pipeline_failure(self, client, notes_engine):
        notes_engine.take_notes.side_effect = LLMError("bad output")

        response = client.post("/take-notes", json={"paperUrl": PAPER_URL, "paperName": "Paper"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Notes generation failed"

    def test_unexpected_failure(self, client, notes_engine):
        notes_engine.take_notes.side_effect = RuntimeError("boom")

        response = client.post("/take-notes", json={"paperUrl": PAPER_URL, "paperName": "Paper"})

        assert response.status_code == 500


class TestQARoute:

    def test_returns_answer(self, client, qa_engine):
        response = client.post("/qa", json={"paperUrl": PAPER_URL, "question": "Is it good?"})

        assert response.status_code == 200
        assert response.json() == [{"answer": "Yes.", "followupQuestions": ["Why?"]}]
        qa_engine.answer_question.assert_called_once_with("Is it good?", PAPER_URL)

    def test_paper_not_ingested(self, client, qa_engine):
        qa_engine.answer_question.side_effect = PaperNotFoundError("No notes found for paper")

        response = client.post("/qa", json={"paperUrl": PAPER_URL, "question": "Is it good?"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No notes found for paper"

    def test_storage_failure(self, client, qa_engine):
        qa_engine.answer_question.side_effect = StorageError("disk full")

        response = client.post("/qa", json={"paperUrl": PAPER_URL, "question": "Is it good?"})

        assert response.status_code == 500
        assert response.json()["detail"] == "QA failed"

    def test_empty_question(self, client):
        response = client.post("/qa", json={"paperUrl": PAPER_URL, "question": ""})
        assert response.status_code == 422
