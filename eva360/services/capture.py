# eva360/services/capture.py
"""
Flujo del respondente: canje de código -> respuestas (re-enviables) -> finalización.

Cada operación corre en una sola transacción (`atomic`). Toda validación ocurre
antes de la primera escritura, así que un error nunca deja un lote a medias.
La fila de la sesión se lee con SELECT ... FOR UPDATE (en SQLite, `atomic` abre con
BEGIN IMMEDIATE) para que envíos y finalizaciones concurrentes sobre la misma
sesión se serialicen en la BD.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eva360.core.errors import Conflict, Incomplete, Internal, InvalidReference, InvalidValue, NotFound
from eva360.core.logging import fmt
from eva360.db.session import atomic
from eva360.models.codigo import EvaluationCode
from eva360.models.encuesta import Question
from eva360.models.sesion import EvaluationSession, Response
from eva360.services.tokens import SessionToken

logger = logging.getLogger(__name__)

RATING_SCALE = (1, 2, 3, 4, 5)


@dataclass
class RedeemResult:
    sesion_id: int
    token_sesion: SessionToken
    encuesta_id: int
    equipo_id: int
    evaluado_nombre: Optional[str]
    preguntas: list[dict[str, Any]] = field(default_factory=list)
    escala: tuple[int, ...] = RATING_SCALE


@dataclass
class SubmitResult:
    sesion_id: int
    inserted: int
    updated: int


# -------------------- helpers puros -------------------- #

def normalize_code(raw: Optional[str]) -> str:
    return (raw or "").strip().upper()


def missing_questions(survey_ids: Iterable[int], submitted_ids: Iterable[int]) -> list[int]:
    """Preguntas de la encuesta que no vienen en el lote (orden ascendente)."""
    return sorted(set(survey_ids) - set(submitted_ids))


def foreign_questions(survey_ids: Iterable[int], submitted_ids: Iterable[int]) -> list[int]:
    """Preguntas del lote que no pertenecen a la encuesta."""
    return sorted(set(submitted_ids) - set(survey_ids))


def duplicated_questions(submitted_ids: Sequence[int]) -> list[int]:
    seen: set[int] = set()
    dupes: set[int] = set()
    for qid in submitted_ids:
        if qid in seen:
            dupes.add(qid)
        seen.add(qid)
    return sorted(dupes)


def is_valid_rating(value: Any) -> bool:
    # bool es subclase de int; True no es una calificación
    return isinstance(value, int) and not isinstance(value, bool) and value in RATING_SCALE


def _survey_question_ids(db: Session, encuesta_id: int) -> list[int]:
    rows = (
        db.query(Question.id)
        .filter(Question.encuesta_id == encuesta_id)
        .order_by(Question.id.asc())
        .all()
    )
    return [qid for (qid,) in rows]


def _locked_session(db: Session, token_sesion: str) -> Optional[EvaluationSession]:
    return (
        db.query(EvaluationSession)
        .filter(EvaluationSession.token_sesion == token_sesion)
        .with_for_update()
        .first()
    )


# -------------------- operaciones -------------------- #

def redeem(db: Session, codigo: str) -> RedeemResult:
    """Canjea un código activo: crea una sesión nueva y devuelve las preguntas en orden."""
    normalized = normalize_code(codigo)

    with atomic(db):
        code = db.query(EvaluationCode).filter(EvaluationCode.codigo == normalized).first()
        if not code or not code.activo:
            raise NotFound("Código no encontrado o inactivo", context={"codigo": normalized})

        token = SessionToken.generate()
        ses = EvaluationSession(encuesta_equipo_id=code.id, token_sesion=str(token), finalizada=False)
        db.add(ses)
        try:
            db.flush()
        except IntegrityError as exc:
            # colisión de un token de 192 bits: no se reintenta, se reporta
            raise Internal("No fue posible crear la sesión", context={"codigo": normalized}) from exc

        preguntas = (
            db.query(Question)
            .filter(Question.encuesta_id == code.encuesta_id)
            .order_by(Question.id.asc())
            .all()
        )
        result = RedeemResult(
            sesion_id=ses.id,
            token_sesion=token,
            encuesta_id=code.encuesta_id,
            equipo_id=code.equipo_id,
            evaluado_nombre=code.evaluado_nombre or None,
            preguntas=[{"id": q.id, "texto": q.texto, "dimension": q.dimension} for q in preguntas],
        )

    logger.info(fmt("Sesión creada", {"sesion_id": result.sesion_id, "codigo": normalized}))
    return result


def submit(db: Session, token_sesion: str, respuestas: Iterable[tuple[int, Any]]) -> SubmitResult:
    """
    Guarda un lote completo de respuestas. Upsert por (sesión, pregunta):
    inserta las nuevas y sobrescribe las existentes refrescando su fecha.
    """
    pairs = list(respuestas)
    submitted_ids = [qid for qid, _ in pairs]

    with atomic(db):
        ses = _locked_session(db, token_sesion)
        if ses is None:
            raise NotFound("Sesión no encontrada")
        if ses.finalizada:
            raise Conflict("Sesión finalizada", context={"sesion_id": ses.id})

        encuesta_id = (
            db.query(EvaluationCode.encuesta_id)
            .filter(EvaluationCode.id == ses.encuesta_equipo_id)
            .scalar()
        )
        survey_ids = _survey_question_ids(db, encuesta_id)

        missing = missing_questions(survey_ids, submitted_ids)
        if missing:
            raise Incomplete(
                f"Faltan {len(missing)} pregunta(s) sin responder. "
                "Debes responder todas las preguntas de la encuesta.",
                context={"encuesta_id": encuesta_id},
                public={
                    "preguntas_faltantes": missing,
                    "total_preguntas": len(survey_ids),
                    "respuestas_enviadas": len(submitted_ids),
                },
            )

        foreign = foreign_questions(survey_ids, submitted_ids)
        if foreign:
            raise InvalidReference(
                "Hay preguntas fuera de la encuesta",
                context={"encuesta_id": encuesta_id},
                public={"preguntas_invalidas": foreign},
            )

        dupes = duplicated_questions(submitted_ids)
        if dupes:
            raise InvalidValue("Preguntas repetidas en el lote", public={"preguntas_repetidas": dupes})

        invalid = [qid for qid, valor in pairs if not is_valid_rating(valor)]
        if invalid:
            raise InvalidValue(
                "respuestas inválidas (pregunta_id int, valor 1..5)",
                public={"preguntas_invalidas": sorted(invalid)},
            )

        existing = {
            r.pregunta_id: r
            for r in db.query(Response).filter(Response.sesion_id == ses.id).all()
        }
        inserted = updated = 0
        for qid, valor in pairs:
            row = existing.get(qid)
            if row is None:
                db.add(Response(sesion_id=ses.id, pregunta_id=qid, valor=valor))
                inserted += 1
            else:
                row.valor = valor
                row.actualizado_en = func.now()
                updated += 1
        db.flush()
        result = SubmitResult(sesion_id=ses.id, inserted=inserted, updated=updated)

    logger.info(fmt("Respuestas guardadas", {
        "sesion_id": result.sesion_id, "inserted": result.inserted, "updated": result.updated,
    }))
    return result


def finalize(db: Session, token_sesion: str, *, strict: bool = False) -> int:
    """
    Cierra la sesión para siempre. El check-and-set es un UPDATE condicional
    dentro de la misma transacción: de dos llamadas concurrentes solo una gana.
    Con `strict` exige además una respuesta por cada pregunta de la encuesta.
    """
    with atomic(db):
        ses = _locked_session(db, token_sesion)
        if ses is None:
            raise NotFound("Sesión no encontrada")
        if ses.finalizada:
            raise Conflict("Sesión ya finalizada", context={"sesion_id": ses.id})
        sesion_id = ses.id

        if strict:
            encuesta_id = (
                db.query(EvaluationCode.encuesta_id)
                .filter(EvaluationCode.id == ses.encuesta_equipo_id)
                .scalar()
            )
            answered = [
                qid for (qid,) in db.query(Response.pregunta_id).filter(Response.sesion_id == sesion_id)
            ]
            survey_ids = _survey_question_ids(db, encuesta_id)
            missing = missing_questions(survey_ids, answered)
            if missing:
                raise Incomplete(
                    f"No se puede finalizar: faltan {len(missing)} pregunta(s) sin responder.",
                    public={
                        "preguntas_faltantes": missing,
                        "total_preguntas": len(survey_ids),
                        "respuestas_enviadas": len(answered),
                    },
                )

        res = db.execute(
            update(EvaluationSession)
            .where(EvaluationSession.id == sesion_id, EvaluationSession.finalizada.is_(False))
            .values(finalizada=True)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise Conflict("Sesión ya finalizada", context={"sesion_id": sesion_id})

    logger.info(fmt("Sesión finalizada", {"sesion_id": sesion_id}))
    return sesion_id
