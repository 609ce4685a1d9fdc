# eva360/services/codes.py
"""
Alta, edición y baja de códigos de evaluación.

La baja es dura solo si ninguna sesión del código tiene respuestas; si alguna
tiene, el código se desactiva y se conserva todo el historial.
"""
from __future__ import annotations

import enum
import logging
import secrets
import string
from typing import Optional

from fastapi import Request
from sqlalchemy import delete, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eva360.core.config import settings
from eva360.core.errors import Conflict, Exhausted, Internal, NoOp, NotFound
from eva360.core.logging import fmt
from eva360.db.session import atomic
from eva360.models.codigo import EvaluationCode
from eva360.models.encuesta import Survey
from eva360.models.organizacion import Company, Team
from eva360.models.sesion import EvaluationSession, Response
from eva360.services.audit import audit_log
from eva360.services.capture import normalize_code

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = "Empresa Demo"
DEFAULT_TEAM = "Equipo General"
_UNSET = object()


class DeleteOutcome(enum.Enum):
    DELETED = "eliminado"
    DEACTIVATED = "desactivado"


def generate_code() -> str:
    """Código de 6 caracteres: 3 letras mayúsculas + 3 dígitos (ej. QWE482)."""
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
    digits = "".join(secrets.choice(string.digits) for _ in range(3))
    return letters + digits


def ensure_default_team(db: Session) -> int:
    """Devuelve el equipo por defecto, creando empresa/equipo demo si faltan."""
    with atomic(db):
        empresa = db.query(Company).filter(Company.nombre == DEFAULT_COMPANY).first()
        if not empresa:
            empresa = Company(nombre=DEFAULT_COMPANY)
            db.add(empresa)
            db.flush()
            logger.info(fmt("Se creó empresa por defecto", {"empresa_id": empresa.id}))

        equipo = (
            db.query(Team)
            .filter(Team.empresa_id == empresa.id, Team.nombre == DEFAULT_TEAM)
            .first()
        )
        if not equipo:
            equipo = Team(empresa_id=empresa.id, nombre=DEFAULT_TEAM)
            db.add(equipo)
            db.flush()
            logger.info(fmt("Se creó equipo por defecto", {"equipo_id": equipo.id}))
        equipo_id = equipo.id
    return equipo_id


def _get_code(db: Session, code_id: int) -> EvaluationCode:
    code = db.query(EvaluationCode).filter(EvaluationCode.id == code_id).first()
    if not code:
        raise NotFound("Código no encontrado", context={"id": code_id})
    return code


def list_codes(db: Session) -> list[EvaluationCode]:
    return db.query(EvaluationCode).order_by(EvaluationCode.id.desc()).all()


def create_code(
    db: Session,
    *,
    evaluado_nombre: str,
    encuesta_id: Optional[int] = None,
    codigo: Optional[str] = None,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> EvaluationCode:
    """
    Con `codigo` se intenta exactamente ese valor (Conflict si ya existe).
    Sin él se generan candidatos al azar, hasta CODE_GENERATION_ATTEMPTS intentos;
    cada intento es su propia transacción y la unicidad la decide la BD.
    """
    encuesta_id = encuesta_id or settings.DEFAULT_SURVEY_ID
    nombre = evaluado_nombre.strip()
    desired = normalize_code(codigo) if codigo else None

    if not db.query(exists().where(Survey.id == encuesta_id)).scalar():
        db.rollback()
        raise NotFound("Encuesta no encontrada", context={"encuesta_id": encuesta_id})
    equipo_id = ensure_default_team(db)

    attempts = 1 if desired else settings.CODE_GENERATION_ATTEMPTS
    for _ in range(attempts):
        candidate = desired or generate_code()
        code = EvaluationCode(
            encuesta_id=encuesta_id,
            equipo_id=equipo_id,
            codigo=candidate,
            activo=True,
            evaluado_nombre=nombre,
        )
        db.add(code)
        audit_log(db, actor=actor, accion="codigo.crear",
                  payload={"codigo": candidate, "evaluado_nombre": nombre}, request=request)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(fmt("Intento de código duplicado", {"candidate": candidate}))
            if desired:
                raise Conflict("Código duplicado, intenta con otro", context={"candidate": candidate})
            continue

        db.refresh(code)
        logger.info(fmt("Código creado", {"id": code.id, "codigo": candidate}))
        return code

    raise Exhausted("No fue posible generar código único", context={"attempts": attempts})


def update_code(
    db: Session,
    code_id: int,
    *,
    evaluado_nombre: Optional[str] = None,
    activo: Optional[bool] = None,
    codigo: Optional[str] = None,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> EvaluationCode:
    """Actualización parcial; los campos en None no se tocan."""
    with atomic(db):
        code = _get_code(db, code_id)
        changes: dict = {}

        if evaluado_nombre is not None:
            changes["evaluado_nombre"] = evaluado_nombre.strip()

        if activo is not None:
            changes["activo"] = bool(activo)

        if codigo is not None:
            upper = normalize_code(codigo)
            duplicate = (
                db.query(EvaluationCode.id)
                .filter(EvaluationCode.codigo == upper, EvaluationCode.id != code_id)
                .first()
            )
            if duplicate:
                raise Conflict("Código duplicado", context={"codigo": upper})
            changes["codigo"] = upper

        if not changes:
            raise NoOp("No hay campos para actualizar", context={"id": code_id})

        for attr, value in changes.items():
            setattr(code, attr, value)
        audit_log(db, actor=actor, accion="codigo.actualizar",
                  payload={"id": code_id, **changes}, request=request)
        db.flush()

    db.refresh(code)
    logger.info(fmt("Código actualizado", {"id": code_id, "campos": sorted(changes)}))
    return code


def delete_code(
    db: Session,
    code_id: int,
    *,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> DeleteOutcome:
    """
    Si cualquier sesión del código tiene al menos una respuesta, se desactiva.
    Si no, se borran sus sesiones y el código. Todo en una transacción.
    """
    with atomic(db):
        code = _get_code(db, code_id)
        codigo = code.codigo

        # un envío concurrente a cualquiera de estas sesiones espera a que la baja termine
        db.query(EvaluationSession.id).filter(
            EvaluationSession.encuesta_equipo_id == code_id
        ).with_for_update().all()

        has_responses = db.query(
            exists()
            .where(Response.sesion_id == EvaluationSession.id)
            .where(EvaluationSession.encuesta_equipo_id == code_id)
        ).scalar()

        if has_responses:
            code.activo = False
            audit_log(db, actor=actor, accion="codigo.desactivar", payload={"id": code_id}, request=request)
            outcome = DeleteOutcome.DEACTIVATED
        else:
            db.execute(
                delete(EvaluationSession)
                .where(EvaluationSession.encuesta_equipo_id == code_id)
                .execution_options(synchronize_session=False)
            )
            res = db.execute(
                delete(EvaluationCode)
                .where(EvaluationCode.id == code_id)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount == 0:
                raise Internal(f"No se pudo eliminar el código con id {code_id}.")
            audit_log(db, actor=actor, accion="codigo.eliminar",
                      payload={"id": code_id, "codigo": codigo}, request=request)
            outcome = DeleteOutcome.DELETED

    logger.info(fmt("Código " + outcome.value, {"id": code_id}))
    return outcome
