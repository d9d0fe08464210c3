"""
Shared test fixtures for Markwise.
Monkeypatches the cached Supabase and model clients with in-memory fakes.
Zero network calls.
"""
import copy
import itertools
import json
import time
from types import SimpleNamespace

import jwt
import pytest

TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
TEACHER_ID = "teacher-1"
OTHER_TEACHER_ID = "teacher-2"


# ══════════════════════════════════════════════════════════════
# FAKE SUPABASE
# ══════════════════════════════════════════════════════════════

class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = 'select'
        self.payload = None
        self.columns = '*'
        self.filters = []
        self.order_by = None

    def select(self, columns='*', **kwargs):
        self.op = 'select'
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = 'insert'
        self.payload = payload
        return self

    def update(self, payload):
        self.op = 'update'
        self.payload = payload
        return self

    def delete(self):
        self.op = 'delete'
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def execute(self):
        return self.db._execute(self)


class FakeStorageBucket:
    def __init__(self, storage, bucket):
        self.storage = storage
        self.bucket = bucket

    def upload(self, path, data, file_options=None):
        self.storage.uploads.append({
            "bucket": self.bucket, "path": path, "data": data, "options": file_options,
        })
        return {"Key": f"{self.bucket}/{path}"}

    def create_signed_url(self, path, expires_in):
        self.storage.signed.append((path, expires_in))
        if self.storage.sign_error:
            raise self.storage.sign_error
        return {"signedURL": f"https://storage.test/{self.bucket}/{path}?token=abc&expires={expires_in}"}


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.signed = []
        self.sign_error = None

    def from_(self, bucket):
        return FakeStorageBucket(self, bucket)


class FakeSupabase:
    """Records every query and keeps rows in memory."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.rpc_calls = []
        self.rpc_results = {}
        self.failures = {}
        self.storage = FakeStorage()
        self._ids = itertools.count(1)

    # -- helpers for tests --------------------------------------------------

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def rows(self, table):
        return self.tables.get(table, [])

    def fail(self, table, op, error, times=None):
        """Raise `error` on matching queries; `times` limits how often."""
        self.failures[(table, op)] = [error, times]

    def calls_for(self, table, op=None):
        return [c for c in self.calls if c["table"] == table and (op is None or c["op"] == op)]

    # -- client API ---------------------------------------------------------

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, fn, params=None):
        self.rpc_calls.append((fn, params))
        result = self.rpc_results.get(fn, [])
        return SimpleNamespace(execute=lambda: self._rpc_result(result))

    def _rpc_result(self, result):
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(data=copy.deepcopy(result))

    def _matches(self, row, filters):
        return all(row.get(col) == val for col, val in filters)

    def _with_relations(self, table, row, columns):
        row = copy.deepcopy(row)
        if table == 'student_answers' and 'questions(' in columns:
            question = next(
                (q for q in self.rows('questions') if q.get('id') == row.get('question_id')), None
            )
            row['questions'] = copy.deepcopy(question)
        if table == 'student_answers' and 'evaluations(' in columns:
            row['evaluations'] = [
                copy.deepcopy(e) for e in self.rows('evaluations') if e.get('answer_id') == row.get('id')
            ]
        return row

    def _execute(self, query):
        self.calls.append({
            "table": query.table, "op": query.op,
            "payload": copy.deepcopy(query.payload), "filters": list(query.filters),
        })
        failure = self.failures.get((query.table, query.op))
        if failure is not None:
            error, times = failure
            if times is not None:
                if times <= 1:
                    del self.failures[(query.table, query.op)]
                else:
                    failure[1] = times - 1
            raise error

        rows = self.tables.setdefault(query.table, [])

        if query.op == 'insert':
            payloads = query.payload if isinstance(query.payload, list) else [query.payload]
            inserted = []
            for payload in payloads:
                row = dict(payload)
                row.setdefault('id', f"{query.table}-{next(self._ids)}")
                stamp = time.strftime('%Y-%m-%dT%H:%M:%S') + f".{next(self._ids):06d}"
                if query.table == 'evaluations':
                    row.setdefault('evaluated_at', stamp)
                else:
                    row.setdefault('created_at', stamp)
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        matched = [r for r in rows if self._matches(r, query.filters)]

        if query.op == 'update':
            for row in matched:
                row.update(query.payload)
            return SimpleNamespace(data=copy.deepcopy(matched))

        if query.op == 'delete':
            self.tables[query.table] = [r for r in rows if not self._matches(r, query.filters)]
            return SimpleNamespace(data=copy.deepcopy(matched))

        result = [self._with_relations(query.table, r, query.columns) for r in matched]
        if query.order_by:
            column, desc = query.order_by
            result.sort(key=lambda r: r.get(column) or '', reverse=desc)
        return SimpleNamespace(data=result)


# ══════════════════════════════════════════════════════════════
# FAKE MODEL API
# ══════════════════════════════════════════════════════════════

class FakeAI:
    """OpenAI-compatible client with scripted chat replies and embeddings."""

    def __init__(self):
        self.chat_calls = []
        self.embed_calls = []
        self.chat_replies = []
        self.embed_error = None
        self.embed_fail_on_call = None
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._chat_create))
        self.embeddings = SimpleNamespace(create=self._embed_create)

    def reply_with(self, *replies):
        """Queue chat replies: strings, dicts (sent as JSON) or exceptions."""
        self.chat_replies.extend(replies)

    def _chat_create(self, **kwargs):
        self.chat_calls.append(kwargs)
        reply = self.chat_replies.pop(0) if self.chat_replies else "{}"
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, SimpleNamespace):
            return reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    def _embed_create(self, **kwargs):
        self.embed_calls.append(kwargs)
        if self.embed_fail_on_call is not None and len(self.embed_calls) == self.embed_fail_on_call:
            raise RuntimeError("embedding service unavailable")
        if self.embed_error:
            raise self.embed_error
        vector = [0.01 * len(self.embed_calls), 0.2, 0.3]
        return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


# ══════════════════════════════════════════════════════════════
# FIXTURES
# ══════════════════════════════════════════════════════════════

@pytest.fixture
def fake_db(monkeypatch):
    import markwise.services.clients as clients
    db = FakeSupabase()
    monkeypatch.setattr(clients, "_supabase", db)
    return db


@pytest.fixture
def fake_ai(monkeypatch):
    import markwise.services.clients as clients
    ai = FakeAI()
    monkeypatch.setattr(clients, "_ai_client", ai)
    return ai


@pytest.fixture(autouse=True)
def _reset_soft_failures():
    from markwise.services.observability import reset_soft_failures
    reset_soft_failures()
    yield
    reset_soft_failures()


@pytest.fixture
def scheduled_ocr(monkeypatch):
    """Capture OCR jobs instead of running them on the thread pool."""
    import markwise.services.answer_service as answer_service
    jobs = []
    monkeypatch.setattr(answer_service, "schedule_ocr", lambda answer_id, path: jobs.append((answer_id, path)))
    return jobs


@pytest.fixture
def app(monkeypatch):
    from markwise.app import app as flask_app
    from markwise.config import config
    monkeypatch.setattr(config, "jwt_secret", TEST_JWT_SECRET)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(user_id=TEACHER_ID, email="teacher@school.test", expires_in=3600, secret=TEST_JWT_SECRET):
    return jwt.encode(
        {"sub": user_id, "email": email, "aud": "authenticated", "exp": int(time.time()) + expires_in},
        secret,
        algorithm="HS256",
    )


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer " + make_token()}


@pytest.fixture
def other_teacher_headers():
    return {"Authorization": "Bearer " + make_token(user_id=OTHER_TEACHER_ID, email="other@school.test")}


@pytest.fixture
def sample_question(fake_db):
    question = {
        "id": "q-1",
        "question_text": "What is photosynthesis?",
        "ideal_answer": "Plants convert light energy, water and carbon dioxide into glucose and oxygen.",
        "max_marks": 10,
        "subject": "Biology",
        "difficulty": "medium",
        "created_by": TEACHER_ID,
        "created_at": "2026-01-01T00:00:00",
    }
    fake_db.seed('questions', question)
    return question


@pytest.fixture
def sample_answer(fake_db, sample_question):
    answer = {
        "id": "a-1",
        "question_id": sample_question["id"],
        "image_path": "teacher-1/1700000000000-abc.jpg",
        "student_name": "Alice Johnson",
        "ocr_text": "Plants use sunlight to make food.",
        "ocr_confidence": 0.9,
        "ocr_status": "done",
        "uploaded_by": TEACHER_ID,
        "uploaded_at": "2026-01-02T00:00:00",
    }
    fake_db.seed('student_answers', answer)
    return answer


GOOD_EVALUATION = {
    "similarity_score": 0.7,
    "concept_coverage": 0.6,
    "final_score": 0.65,
    "marks": 6.5,
    "explanation": "Partially correct.",
    "strengths": "Mentions sunlight.",
    "weaknesses": "Omits carbon dioxide and oxygen.",
    "missing_concepts": ["carbon dioxide", "oxygen"],
    "suggestions": "Name the inputs and outputs.",
}


@pytest.fixture
def good_evaluation():
    return dict(GOOD_EVALUATION)


@pytest.fixture
def sample_evaluation(fake_db, sample_answer):
    evaluation = dict(GOOD_EVALUATION, id="e-1", answer_id=sample_answer["id"],
                      evaluated_at="2026-01-03T00:00:00")
    fake_db.seed('evaluations', evaluation)
    return evaluation
