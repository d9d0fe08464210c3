"""
Test: Function endpoints: /api/evaluate-answer, /api/process-ocr and
/api/ingest-document.
"""
from markwise.services.grading_service import EVALUATION_PARSE_ERROR


EVALUATE_BODY = {
    "answerId": "a-1",
    "questionText": "What is photosynthesis?",
    "idealAnswer": "Plants make glucose from light.",
    "maxMarks": 10,
    "ocrText": "Plants use sunlight.",
}


class TestEvaluateAnswerEndpoint:
    def test_success(self, client, fake_db, fake_ai, good_evaluation):
        fake_ai.reply_with(good_evaluation)
        resp = client.post("/api/evaluate-answer", json=EVALUATE_BODY)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["evaluation"]["marks"] == 6.5
        assert data["evaluation"]["answer_id"] == "a-1"

    def test_marks_clamped_in_response(self, client, fake_db, fake_ai, good_evaluation):
        good_evaluation["marks"] = 15
        fake_ai.reply_with(good_evaluation)
        resp = client.post("/api/evaluate-answer", json=EVALUATE_BODY)
        assert resp.get_json()["evaluation"]["marks"] == 10.0

    def test_missing_fields(self, client, fake_db, fake_ai):
        resp = client.post("/api/evaluate-answer", json={"answerId": "a-1"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing required fields"}
        assert fake_ai.chat_calls == []

    def test_unparseable_reply(self, client, fake_db, fake_ai):
        fake_ai.reply_with("Looks fine to me!")
        resp = client.post("/api/evaluate-answer", json=EVALUATE_BODY)
        assert resp.status_code == 500
        assert resp.get_json() == {"error": EVALUATION_PARSE_ERROR}
        assert fake_db.calls_for("evaluations", "insert") == []

    def test_anonymous_call_skips_context(self, client, fake_db, fake_ai, good_evaluation):
        fake_ai.reply_with(good_evaluation)
        client.post("/api/evaluate-answer", json=EVALUATE_BODY)
        assert "find_relevant_context" not in [fn for fn, _ in fake_db.rpc_calls]

    def test_authenticated_call_scopes_context(self, client, fake_db, fake_ai, good_evaluation, auth_headers):
        fake_ai.reply_with(good_evaluation)
        client.post("/api/evaluate-answer", json=EVALUATE_BODY, headers=auth_headers)
        calls = dict(fake_db.rpc_calls)
        assert calls["find_relevant_context"]["_user_id"] == "teacher-1"

    def test_invalid_token_rejected(self, client, fake_db, fake_ai):
        resp = client.post("/api/evaluate-answer", json=EVALUATE_BODY,
                           headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_rate_limit_message_passed_through(self, client, fake_db, fake_ai):
        fake_ai.reply_with(RuntimeError("Error code: 429 - Too Many Requests"))
        resp = client.post("/api/evaluate-answer", json=EVALUATE_BODY)
        assert resp.status_code == 500
        assert "429" in resp.get_json()["error"]


class TestProcessOcrEndpoint:
    def test_success(self, client, fake_db, fake_ai, sample_answer):
        fake_ai.reply_with({"text": "Handwritten words", "confidence": 0.75})
        resp = client.post("/api/process-ocr", json={"answerId": "a-1", "imageUrl": "https://img.test/a.jpg"})
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "ocr": {"text": "Handwritten words", "confidence": 0.75}}

    def test_missing_fields(self, client, fake_db, fake_ai):
        resp = client.post("/api/process-ocr", json={"answerId": "a-1"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing required fields"}

    def test_parse_failure(self, client, fake_db, fake_ai, sample_answer):
        fake_ai.reply_with("no json here")
        resp = client.post("/api/process-ocr", json={"answerId": "a-1", "imageUrl": "https://img.test/a.jpg"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to parse OCR response"}


class TestIngestDocumentEndpoint:
    def test_requires_auth(self, client, fake_db, fake_ai):
        resp = client.post("/api/ingest-document", json={"title": "t", "textContent": "Some text."})
        assert resp.status_code == 401
        assert fake_db.calls == []

    def test_success(self, client, fake_db, fake_ai, auth_headers):
        resp = client.post("/api/ingest-document", headers=auth_headers,
                           json={"title": "Notes", "textContent": "Photosynthesis makes glucose."})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["chunks_processed"] == 1
        assert data["document_id"] == fake_db.rows("documents")[0]["id"]
        assert fake_db.rows("documents")[0]["uploaded_by"] == "teacher-1"

    def test_missing_content(self, client, fake_db, fake_ai, auth_headers):
        resp = client.post("/api/ingest-document", headers=auth_headers, json={"title": "Notes"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing textContent or fileUrl"}

    def test_list_documents(self, client, fake_db, auth_headers):
        fake_db.seed("documents", {"id": "d-1", "title": "Mine", "uploaded_by": "teacher-1",
                                   "created_at": "2026-01-01"})
        resp = client.get("/api/documents", headers=auth_headers)
        assert resp.status_code == 200
        assert [d["id"] for d in resp.get_json()["documents"]] == ["d-1"]
