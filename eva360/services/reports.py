# eva360/services/reports.py
"""
Promedios por dimensión sobre sesiones finalizadas.

El promedio es la media de todas las respuestas individuales del grupo
(SUM/COUNT en la BD), no un promedio de promedios. Se redondea a 2 decimales
con HALF_UP sobre el valor exacto en Decimal.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from io import BytesIO
from typing import Any, Iterable

from openpyxl import Workbook
from sqlalchemy import func
from sqlalchemy.orm import Session

from eva360.models.codigo import EvaluationCode
from eva360.models.encuesta import Question
from eva360.models.sesion import EvaluationSession, Response

TWO_PLACES = Decimal("0.01")


def round_half_up(total: Any, count: int) -> float:
    """Media exacta total/count redondeada a 2 decimales (3.665 -> 3.67)."""
    mean = Decimal(str(total)) / Decimal(count)
    return float(mean.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def _fold(rows: Iterable[Any], key: str, id_field: str) -> list[dict[str, Any]]:
    """Agrupa filas (grupo, dimensión) en un registro por grupo, preservando el orden."""
    out: dict[int, dict[str, Any]] = {}
    for r in rows:
        gid = getattr(r, key)
        if gid not in out:
            out[gid] = {
                id_field: gid,
                "codigo": r.codigo,
                "evaluado_nombre": r.evaluado_nombre,
                "por_area": {},
            }
        out[gid]["por_area"][r.dimension] = round_half_up(r.total, r.n)
    return list(out.values())


def _base_query(db: Session, group_col):
    return (
        db.query(
            group_col.label("group_id"),
            EvaluationCode.codigo.label("codigo"),
            EvaluationCode.evaluado_nombre.label("evaluado_nombre"),
            Question.dimension.label("dimension"),
            func.sum(Response.valor).label("total"),
            func.count(Response.id).label("n"),
        )
        .select_from(EvaluationSession)
        .join(EvaluationCode, EvaluationCode.id == EvaluationSession.encuesta_equipo_id)
        .join(Response, Response.sesion_id == EvaluationSession.id)
        .join(Question, Question.id == Response.pregunta_id)
        .filter(EvaluationSession.finalizada.is_(True))
        .group_by(group_col, EvaluationCode.codigo, EvaluationCode.evaluado_nombre, Question.dimension)
        .order_by(group_col.desc(), Question.dimension.asc())
    )


def per_session(db: Session) -> list[dict[str, Any]]:
    """Un registro por sesión finalizada: {sesion_id, codigo, evaluado_nombre, por_area}."""
    rows = _base_query(db, EvaluationSession.id).all()
    return _fold(rows, "group_id", "sesion_id")


def per_evaluated(db: Session) -> list[dict[str, Any]]:
    """Un registro por código (persona evaluada), acumulando todas sus sesiones finalizadas."""
    rows = _base_query(db, EvaluationCode.id).all()
    return _fold(rows, "group_id", "evaluado_id")


def export_workbook(db: Session) -> bytes:
    """Libro Excel con las dos vistas, una fila por (grupo, dimensión)."""
    wb = Workbook()
    ws_ses = wb.active; ws_ses.title = "Por sesion"
    ws_ses.append(["sesion_id", "codigo", "evaluado_nombre", "dimension", "promedio"])
    for rec in per_session(db):
        for dim, avg in rec["por_area"].items():
            ws_ses.append([rec["sesion_id"], rec["codigo"], rec["evaluado_nombre"], dim, avg])

    ws_eva = wb.create_sheet("Por evaluado")
    ws_eva.append(["evaluado_id", "codigo", "evaluado_nombre", "dimension", "promedio"])
    for rec in per_evaluated(db):
        for dim, avg in rec["por_area"].items():
            ws_eva.append([rec["evaluado_id"], rec["codigo"], rec["evaluado_nombre"], dim, avg])

    buf = BytesIO(); wb.save(buf)
    return buf.getvalue()
