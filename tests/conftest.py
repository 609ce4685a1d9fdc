# tests/conftest.py
"""
Cada test corre contra un SQLite en archivo temporal, creado desde Base.metadata.
La app usa la misma BD a través de app.dependency_overrides[get_db].
"""
from __future__ import annotations

import os

# Antes de importar eva360: la config se lee una sola vez al importar
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["BOOTSTRAP_ADMIN_USERNAME"] = ""
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from eva360.core.security import ADMIN_ROLE, create_access_token
from eva360.db.base import Base
from eva360.db.session import get_db, make_engine
from eva360.main import app
from eva360.models.encuesta import Question, Survey
from eva360.scripts.seed import seed_demo


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'eva360_test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def fresh(session_factory):
    """Sesión nueva para verificar el estado real de la BD tras una operación."""
    sessions = []

    def _open():
        s = session_factory()
        sessions.append(s)
        return s

    yield _open
    for s in sessions:
        s.close()


@pytest.fixture
def demo_code(db):
    """Encuesta demo (preguntas COM, TEQ, MOT) y código activo ABC123."""
    return seed_demo(db)


@pytest.fixture
def question_ids(db, demo_code):
    return [
        qid for (qid,) in db.query(Question.id)
        .filter(Question.encuesta_id == demo_code.encuesta_id)
        .order_by(Question.id)
    ]


@pytest.fixture
def other_survey_question(db):
    survey = Survey(nombre="Otra encuesta")
    db.add(survey)
    db.flush()
    q = Question(encuesta_id=survey.id, texto="Pregunta ajena", dimension="COM")
    db.add(q)
    db.commit()
    return q.id


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "1", "username": "tester", "role": ADMIN_ROLE})
    return {"Authorization": f"Bearer {token}"}
