import logging

from eva360.core.security import create_access_token
from eva360.services import codes

CAPTURA = "/api/v1/captura"
ADMIN = "/api/v1/admin"


def _redeem(client, codigo="ABC123"):
    res = client.post(f"{CAPTURA}/sesion", json={"codigo": codigo})
    assert res.status_code == 200, res.text
    return res.json()


def _all_answers(sesion, valor=3):
    return [{"pregunta_id": p["id"], "valor": valor} for p in sesion["preguntas"]]


# -------------------- básicos -------------------- #

def test_health_endpoints(client):
    assert client.get("/health").json() == {"ok": True, "status": "ok"}
    assert client.get("/api/v1/healthz").json() == {"status": "ok"}
    assert client.get("/api/v1/health/db").json() == {"db": "ok"}


def test_unknown_route(client):
    res = client.get("/api/v1/no-existe")
    assert res.status_code == 404
    assert res.json() == {"error": "Ruta no encontrada", "code": "not_found"}


# -------------------- captura -------------------- #

def test_respondent_flow(client, demo_code):
    sesion = _redeem(client, " abc123 ")
    assert sesion["sesion_id"] == sesion["session_id"]
    assert sesion["meta"] == {"escala": [1, 2, 3, 4, 5]}
    assert [p["dimension"] for p in sesion["preguntas"]] == ["COM", "TEQ", "MOT"]
    assert sesion["evaluado_nombre"] is None
    token = sesion["token_sesion"]

    first = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": token, "respuestas": _all_answers(sesion, 3)})
    assert first.json() == {"ok": True, "inserted": 3, "updated": 0}

    second = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": token, "respuestas": _all_answers(sesion, 5)})
    assert second.json() == {"ok": True, "inserted": 0, "updated": 3}

    done = client.post(f"{CAPTURA}/finalizar", json={"token_sesion": token})
    assert done.json() == {"ok": True, "finalizada": True}

    again = client.post(f"{CAPTURA}/finalizar", json={"token_sesion": token})
    assert again.status_code == 409
    assert again.json()["code"] == "conflict"

    late = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": token, "respuestas": _all_answers(sesion)})
    assert late.status_code == 409


def test_redeem_unknown_code(client, demo_code):
    res = client.post(f"{CAPTURA}/sesion", json={"codigo": "ZZZ999"})
    assert res.status_code == 404
    assert res.json() == {"error": "Código no encontrado o inactivo", "code": "not_found"}


def test_redeem_malformed_code(client, demo_code):
    res = client.post(f"{CAPTURA}/sesion", json={"codigo": "abc-123"})
    assert res.status_code == 400
    assert res.json()["code"] == "invalid_value"


def test_incomplete_batch_body(client, demo_code):
    sesion = _redeem(client)
    partial = _all_answers(sesion)[:1]

    res = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": sesion["token_sesion"], "respuestas": partial})

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "incomplete"
    assert body["preguntas_faltantes"] == [p["id"] for p in sesion["preguntas"][1:]]
    assert body["total_preguntas"] == 3
    assert body["respuestas_enviadas"] == 1


def test_out_of_range_value(client, demo_code):
    sesion = _redeem(client)
    answers = _all_answers(sesion)
    answers[0]["valor"] = 9

    res = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": sesion["token_sesion"], "respuestas": answers})

    assert res.status_code == 400
    assert res.json()["code"] == "invalid_value"
    assert res.json()["preguntas_invalidas"] == [answers[0]["pregunta_id"]]


def test_non_integer_value_is_not_coerced(client, demo_code):
    sesion = _redeem(client)
    for bad in ("4", 4.0, True):
        answers = _all_answers(sesion)
        answers[0]["valor"] = bad
        res = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": sesion["token_sesion"], "respuestas": answers})
        assert res.status_code == 400
        assert res.json()["code"] == "invalid_value"


def test_empty_batch_rejected(client, demo_code):
    sesion = _redeem(client)
    res = client.post(f"{CAPTURA}/respuestas", json={"token_sesion": sesion["token_sesion"], "respuestas": []})
    assert res.status_code == 400
    assert res.json()["code"] == "invalid_value"


def test_unknown_session_token(client, demo_code):
    res = client.post(f"{CAPTURA}/respuestas",
                      json={"token_sesion": "desconocido", "respuestas": [{"pregunta_id": 1, "valor": 3}]})
    assert res.status_code == 404
    assert client.post(f"{CAPTURA}/finalizar", json={"token_sesion": "desconocido"}).status_code == 404


def test_strict_finalize_over_http(client, demo_code):
    sesion = _redeem(client)
    res = client.post(f"{CAPTURA}/finalizar", json={"token_sesion": sesion["token_sesion"], "strict": True})
    assert res.status_code == 400
    assert res.json()["code"] == "incomplete"


def test_session_token_never_logged(client, demo_code, caplog):
    caplog.set_level(logging.INFO)
    sesion = _redeem(client)
    token = sesion["token_sesion"]
    client.post(f"{CAPTURA}/respuestas", json={"token_sesion": token, "respuestas": _all_answers(sesion)})
    client.post(f"{CAPTURA}/finalizar", json={"token_sesion": token})
    client.post(f"{CAPTURA}/finalizar", json={"token_sesion": token})

    assert "Sesión finalizada" in caplog.text
    assert token not in caplog.text


# -------------------- admin: auth -------------------- #

def test_admin_requires_token(client):
    res = client.get(f"{ADMIN}/codigos")
    assert res.status_code == 401
    assert res.json()["code"] == "unauthorized"


def test_admin_rejects_garbage_token(client):
    res = client.get(f"{ADMIN}/codigos", headers={"Authorization": "Bearer no.es.jwt"})
    assert res.status_code == 401
    assert res.json()["error"] == "Token inválido"


def test_admin_rejects_expired_token(client):
    token = create_access_token({"sub": "1", "role": "admin"}, expires_minutes=-10)
    res = client.get(f"{ADMIN}/codigos", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["error"] == "Token expirado"


def test_admin_requires_admin_role(client):
    token = create_access_token({"sub": "7", "role": "viewer"})
    res = client.get(f"{ADMIN}/codigos", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 403
    assert res.json()["code"] == "forbidden"


# -------------------- admin: códigos -------------------- #

def test_codes_crud(client, demo_code, admin_headers):
    created = client.post(f"{ADMIN}/codigos", json={"evaluado_nombre": "Ana", "codigo": "ana001"},
                          headers=admin_headers)
    assert created.status_code == 200, created.text
    code = created.json()
    assert code["codigo"] == "ANA001"
    assert code["activo"] is True

    listed = client.get(f"{ADMIN}/codigos", headers=admin_headers).json()
    assert [c["codigo"] for c in listed] == ["ANA001", "ABC123"]

    updated = client.put(f"{ADMIN}/codigos/{code['id']}", json={"activo": False}, headers=admin_headers)
    assert updated.json()["activo"] is False

    noop = client.put(f"{ADMIN}/codigos/{code['id']}", json={}, headers=admin_headers)
    assert noop.status_code == 400
    assert noop.json()["code"] == "no_op"

    deleted = client.delete(f"{ADMIN}/codigos/{code['id']}", headers=admin_headers)
    assert deleted.json() == {"ok": True, "eliminado": True}

    missing = client.delete(f"{ADMIN}/codigos/{code['id']}", headers=admin_headers)
    assert missing.status_code == 404


def test_create_duplicate_code_conflict(client, demo_code, admin_headers):
    res = client.post(f"{ADMIN}/codigos", json={"evaluado_nombre": "Ana", "codigo": "ABC123"}, headers=admin_headers)
    assert res.status_code == 409


def test_create_code_exhausted(client, demo_code, admin_headers, monkeypatch):
    monkeypatch.setattr(codes, "generate_code", lambda: "ABC123")
    res = client.post(f"{ADMIN}/codigos", json={"evaluado_nombre": "Ana"}, headers=admin_headers)
    assert res.status_code == 500
    assert res.json() == {"error": "No fue posible generar código único", "code": "exhausted"}


def test_create_code_requires_name(client, demo_code, admin_headers):
    res = client.post(f"{ADMIN}/codigos", json={"evaluado_nombre": "   "}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["code"] == "invalid_value"


def test_delete_code_with_answers_deactivates(client, demo_code, admin_headers):
    sesion = _redeem(client)
    client.post(f"{CAPTURA}/respuestas",
                json={"token_sesion": sesion["token_sesion"], "respuestas": _all_answers(sesion)})

    res = client.delete(f"{ADMIN}/codigos/{demo_code.id}", headers=admin_headers)

    assert res.json() == {
        "ok": True,
        "desactivado": True,
        "message": "Código desactivado (tiene sesiones con respuestas)",
    }
    assert client.post(f"{CAPTURA}/sesion", json={"codigo": "ABC123"}).status_code == 404


# -------------------- admin: reportes -------------------- #

def test_reports_over_http(client, demo_code, admin_headers):
    for valores in ([5, 4, 5], [1, 4, 4]):
        sesion = _redeem(client)
        answers = [{"pregunta_id": p["id"], "valor": v} for p, v in zip(sesion["preguntas"], valores)]
        client.post(f"{CAPTURA}/respuestas", json={"token_sesion": sesion["token_sesion"], "respuestas": answers})
        client.post(f"{CAPTURA}/finalizar", json={"token_sesion": sesion["token_sesion"]})
    _redeem(client)  # borrador, no cuenta

    por_sesion = client.get(f"{ADMIN}/evaluaciones", headers=admin_headers).json()
    assert len(por_sesion) == 2
    assert por_sesion[0]["sesion_id"] > por_sesion[1]["sesion_id"]
    assert por_sesion[0]["por_area"] == {"COM": 1.0, "MOT": 4.0, "TEQ": 4.0}

    por_evaluado = client.get(f"{ADMIN}/evaluaciones-por-evaluado", headers=admin_headers).json()
    assert por_evaluado == [{
        "evaluado_id": demo_code.id,
        "codigo": "ABC123",
        "evaluado_nombre": None,
        "por_area": {"COM": 3.0, "MOT": 4.5, "TEQ": 4.0},
    }]


def test_export_xlsx(client, demo_code, admin_headers):
    res = client.get(f"{ADMIN}/evaluaciones/export.xlsx", headers=admin_headers)
    assert res.status_code == 200
    assert res.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert res.content[:2] == b"PK"
