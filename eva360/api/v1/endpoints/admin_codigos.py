# eva360/api/v1/endpoints/admin_codigos.py
from typing import List

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session

from eva360.api.deps.admin import require_admin
from eva360.db.session import get_db
from eva360.schemas.codigos import CodigoCreateIn, CodigoDeleteOut, CodigoOut, CodigoUpdateIn
from eva360.services import codes
from eva360.services.codes import DeleteOutcome

router = APIRouter(prefix="/codigos", tags=["admin:codigos"])


@router.post("", response_model=CodigoOut)
def crear_codigo(
    payload: CodigoCreateIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """Crea un código. Sin 'codigo' en el body se genera uno (3 letras + 3 dígitos)."""
    code = codes.create_code(
        db,
        evaluado_nombre=payload.evaluado_nombre,
        encuesta_id=payload.encuesta_id,
        codigo=payload.codigo,
        actor=admin.get("username"),
        request=request,
    )
    return CodigoOut.model_validate(code)


@router.get("", response_model=List[CodigoOut])
def listar_codigos(
    db: Session = Depends(get_db),
    _admin: dict = Depends(require_admin),
):
    return [CodigoOut.model_validate(c) for c in codes.list_codes(db)]


@router.put("/{code_id}", response_model=CodigoOut)
def actualizar_codigo(
    payload: CodigoUpdateIn,
    request: Request,
    code_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    code = codes.update_code(
        db,
        code_id,
        evaluado_nombre=payload.evaluado_nombre,
        activo=payload.activo,
        codigo=payload.codigo,
        actor=admin.get("username"),
        request=request,
    )
    return CodigoOut.model_validate(code)


@router.delete("/{code_id}", response_model=CodigoDeleteOut, response_model_exclude_none=True)
def eliminar_codigo(
    request: Request,
    code_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """
    Elimina el código y sus sesiones si ninguna tiene respuestas;
    si alguna tiene, solo lo desactiva para conservar el historial.
    """
    outcome = codes.delete_code(db, code_id, actor=admin.get("username"), request=request)
    if outcome is DeleteOutcome.DEACTIVATED:
        return CodigoDeleteOut(
            desactivado=True,
            message="Código desactivado (tiene sesiones con respuestas)",
        )
    return CodigoDeleteOut(eliminado=True)
