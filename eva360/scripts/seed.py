#!/usr/bin/env python3
"""
Carga el dataset demo: Empresa Demo / Equipo General / "Encuesta General Q4"
con 3 preguntas (COM, TEQ, MOT) y el código activo ABC123.

Uso: python -m eva360.scripts.seed   (respeta DATABASE_URL)
Es idempotente: lo que ya existe no se duplica.
"""
import logging

from sqlalchemy.orm import Session

from eva360.core.config import settings
from eva360.core.logging import configure_logging, fmt
from eva360.db.base import Base
from eva360.db.session import SessionLocal, atomic, engine
from eva360.models.codigo import EvaluationCode
from eva360.models.encuesta import Question, Survey
from eva360.services.codes import ensure_default_team

logger = logging.getLogger(__name__)

DEMO_SURVEY = "Encuesta General Q4"
DEMO_CODE = "ABC123"
DEMO_QUESTIONS = [
    ("El líder comunica objetivos con claridad", "COM"),
    ("El equipo colabora de forma efectiva", "TEQ"),
    ("Me siento motivado por el trabajo", "MOT"),
]


def seed_demo(db: Session) -> EvaluationCode:
    equipo_id = ensure_default_team(db)
    with atomic(db):
        survey = db.query(Survey).filter(Survey.nombre == DEMO_SURVEY).first()
        if not survey:
            survey = Survey(nombre=DEMO_SURVEY)
            db.add(survey)
            db.flush()
            for texto, dimension in DEMO_QUESTIONS:
                db.add(Question(encuesta_id=survey.id, texto=texto, dimension=dimension))
            logger.info(fmt("Encuesta demo creada", {"encuesta_id": survey.id}))

        code = db.query(EvaluationCode).filter(EvaluationCode.codigo == DEMO_CODE).first()
        if not code:
            code = EvaluationCode(
                encuesta_id=survey.id, equipo_id=equipo_id, codigo=DEMO_CODE,
                activo=True, evaluado_nombre=None,
            )
            db.add(code)
            logger.info(fmt("Código de prueba creado", {"codigo": DEMO_CODE}))
    db.refresh(code)
    return code


def main() -> None:
    configure_logging(settings)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_demo(db)
    logger.info("[OK] Datos demo listos. Código de prueba: %s", DEMO_CODE)


if __name__ == "__main__":
    main()
