import re

import pytest
from sqlalchemy import false

from eva360.core.config import settings
from eva360.core.errors import Conflict, Exhausted, Internal, NoOp, NotFound
from eva360.models.audit import AuditLog
from eva360.models.codigo import EvaluationCode
from eva360.models.organizacion import Team
from eva360.models.sesion import EvaluationSession, Response
from eva360.services import capture, codes
from eva360.services.codes import DeleteOutcome


def _actions(session):
    return [a.accion for a in session.query(AuditLog).order_by(AuditLog.id)]


def test_generate_code_format():
    for _ in range(50):
        assert re.fullmatch(r"[A-Z]{3}[0-9]{3}", codes.generate_code())


def test_ensure_default_team_is_idempotent(db, fresh):
    first = codes.ensure_default_team(db)
    second = codes.ensure_default_team(db)
    assert first == second
    assert fresh().query(Team).count() == 1


def test_create_with_generated_code(db, demo_code, fresh):
    code = codes.create_code(db, evaluado_nombre="  Ana Pérez ", actor="tester")

    assert re.fullmatch(r"[A-Z]{3}[0-9]{3}", code.codigo)
    assert code.activo is True
    assert code.evaluado_nombre == "Ana Pérez"
    assert code.encuesta_id == settings.DEFAULT_SURVEY_ID
    assert "codigo.crear" in _actions(fresh())


def test_create_with_given_code_is_normalized(db, demo_code):
    code = codes.create_code(db, evaluado_nombre="Luis", codigo=" xyz789 ")
    assert code.codigo == "XYZ789"


def test_create_with_taken_code_is_conflict(db, demo_code, fresh):
    with pytest.raises(Conflict):
        codes.create_code(db, evaluado_nombre="Luis", codigo="abc123")
    assert fresh().query(EvaluationCode).count() == 1
    assert "codigo.crear" not in _actions(fresh())


def test_create_unknown_survey(db, demo_code):
    with pytest.raises(NotFound):
        codes.create_code(db, evaluado_nombre="Luis", encuesta_id=999)


def test_create_retries_after_collision(db, demo_code, monkeypatch, fresh):
    candidates = iter(["ABC123", "ABC123", "QWE482"])
    monkeypatch.setattr(codes, "generate_code", lambda: next(candidates))

    code = codes.create_code(db, evaluado_nombre="Marta")

    assert code.codigo == "QWE482"
    assert fresh().query(EvaluationCode).count() == 2
    assert _actions(fresh()).count("codigo.crear") == 1


def test_create_gives_up_after_attempt_budget(db, demo_code, monkeypatch, fresh):
    calls = []

    def always_taken():
        calls.append(1)
        return "ABC123"

    monkeypatch.setattr(codes, "generate_code", always_taken)
    monkeypatch.setattr(settings, "CODE_GENERATION_ATTEMPTS", 4)

    with pytest.raises(Exhausted):
        codes.create_code(db, evaluado_nombre="Marta")
    assert len(calls) == 4
    assert fresh().query(EvaluationCode).count() == 1


def test_default_attempt_budget_is_ten():
    assert settings.CODE_GENERATION_ATTEMPTS == 10


def test_list_codes_most_recent_first(db, demo_code):
    codes.create_code(db, evaluado_nombre="B", codigo="BBB222")
    ids = [c.id for c in codes.list_codes(db)]
    assert ids == sorted(ids, reverse=True)
    assert len(ids) == 2


# -------------------- edición -------------------- #

def test_update_fields(db, demo_code, fresh):
    updated = codes.update_code(db, demo_code.id, evaluado_nombre=" Ana ", activo=False, codigo="new001")

    assert (updated.evaluado_nombre, updated.activo, updated.codigo) == ("Ana", False, "NEW001")
    row = fresh().query(EvaluationCode).filter(EvaluationCode.id == demo_code.id).one()
    assert row.codigo == "NEW001"
    assert "codigo.actualizar" in _actions(fresh())


def test_update_keeping_same_code_is_allowed(db, demo_code):
    updated = codes.update_code(db, demo_code.id, codigo="ABC123")
    assert updated.codigo == "ABC123"


def test_update_to_taken_code_is_conflict(db, demo_code, fresh):
    other = codes.create_code(db, evaluado_nombre="B", codigo="BBB222")

    with pytest.raises(Conflict):
        codes.update_code(db, other.id, codigo="abc123", evaluado_nombre="Cambio")

    row = fresh().query(EvaluationCode).filter(EvaluationCode.id == other.id).one()
    assert (row.codigo, row.evaluado_nombre) == ("BBB222", "B")


def test_update_without_fields_is_noop(db, demo_code):
    with pytest.raises(NoOp):
        codes.update_code(db, demo_code.id)


def test_update_unknown_code(db, demo_code):
    with pytest.raises(NotFound):
        codes.update_code(db, 999, activo=False)


# -------------------- baja -------------------- #

def test_delete_code_without_answers_removes_sessions(db, demo_code, fresh):
    capture.redeem(db, "ABC123")
    capture.redeem(db, "ABC123")

    assert codes.delete_code(db, demo_code.id, actor="tester") is DeleteOutcome.DELETED

    s = fresh()
    assert s.query(EvaluationCode).count() == 0
    assert s.query(EvaluationSession).count() == 0
    assert "codigo.eliminar" in _actions(s)


def test_delete_code_with_answers_only_deactivates(db, demo_code, question_ids, fresh):
    empty = capture.redeem(db, "ABC123")
    answered = capture.redeem(db, "ABC123")
    capture.submit(db, answered.token_sesion, [(qid, 4) for qid in question_ids])

    assert codes.delete_code(db, demo_code.id) is DeleteOutcome.DEACTIVATED

    s = fresh()
    row = s.query(EvaluationCode).filter(EvaluationCode.id == demo_code.id).one()
    assert row.activo is False
    assert s.query(EvaluationSession).count() == 2
    assert s.query(Response).count() == 3
    assert "codigo.desactivar" in _actions(s)
    assert empty.sesion_id in {x.id for x in s.query(EvaluationSession)}


def test_delete_unknown_code(db, demo_code):
    with pytest.raises(NotFound):
        codes.delete_code(db, 999)


def test_delete_reports_internal_when_nothing_was_deleted(db, demo_code, monkeypatch, fresh):
    capture.redeem(db, "ABC123")
    real_delete = codes.delete

    def delete_matching_nothing(entity):
        stmt = real_delete(entity)
        return stmt.where(false()) if entity is EvaluationCode else stmt

    monkeypatch.setattr(codes, "delete", delete_matching_nothing)

    with pytest.raises(Internal):
        codes.delete_code(db, demo_code.id)

    s = fresh()
    assert s.query(EvaluationCode).count() == 1
    assert s.query(EvaluationSession).count() == 1
    assert "codigo.eliminar" not in _actions(s)
