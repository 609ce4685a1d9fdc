# eva360/api/v1/endpoints/captura.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eva360.db.session import get_db
from eva360.schemas.captura import (
    FinalizeIn,
    FinalizeOut,
    MetaOut,
    PreguntaOut,
    RedeemIn,
    RedeemOut,
    SubmitIn,
    SubmitOut,
)
from eva360.services import capture

router = APIRouter(prefix="/captura", tags=["captura"])


@router.post("/sesion", response_model=RedeemOut)
def crear_sesion(payload: RedeemIn, db: Session = Depends(get_db)):
    """
    Canjea un código activo y abre una sesión de evaluación.
    El token devuelto es la única credencial para /respuestas y /finalizar.
    """
    res = capture.redeem(db, payload.codigo)
    return RedeemOut(
        sesion_id=res.sesion_id,
        session_id=res.sesion_id,
        token_sesion=str(res.token_sesion),
        encuesta_id=res.encuesta_id,
        equipo_id=res.equipo_id,
        evaluado_nombre=res.evaluado_nombre,
        preguntas=[PreguntaOut(**p) for p in res.preguntas],
        meta=MetaOut(escala=list(res.escala)),
    )


@router.post("/respuestas", response_model=SubmitOut)
def guardar_respuestas(payload: SubmitIn, db: Session = Depends(get_db)):
    res = capture.submit(
        db,
        payload.token_sesion,
        [(r.pregunta_id, r.valor) for r in payload.respuestas],
    )
    return SubmitOut(inserted=res.inserted, updated=res.updated)


@router.post("/finalizar", response_model=FinalizeOut)
def finalizar(payload: FinalizeIn, db: Session = Depends(get_db)):
    capture.finalize(db, payload.token_sesion, strict=payload.strict)
    return FinalizeOut()
