# eva360/api/v1/endpoints/admin_usuarios.py
from typing import List

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session

from eva360.api.deps.admin import require_admin
from eva360.db.session import get_db
from eva360.schemas.auth import UsuarioCreateIn, UsuarioOut, UsuarioUpdateIn
from eva360.services import users

router = APIRouter(prefix="/usuarios", tags=["admin:usuarios"])


@router.get("", response_model=List[UsuarioOut])
def listar_usuarios(db: Session = Depends(get_db), _admin: dict = Depends(require_admin)):
    return [UsuarioOut.model_validate(u) for u in users.list_users(db)]


@router.post("", response_model=UsuarioOut)
def crear_usuario(
    payload: UsuarioCreateIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    user = users.create_user(
        db, username=payload.username, password=payload.password,
        actor=admin.get("username"), request=request,
    )
    return UsuarioOut.model_validate(user)


@router.put("/{user_id}", response_model=UsuarioOut)
def actualizar_usuario(
    payload: UsuarioUpdateIn,
    request: Request,
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    user = users.update_user(
        db, user_id,
        username=payload.username, password=payload.password, activo=payload.activo,
        actor=admin.get("username"), request=request,
    )
    return UsuarioOut.model_validate(user)


@router.delete("/{user_id}")
def eliminar_usuario(
    request: Request,
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    users.delete_user(db, user_id, actor=admin.get("username"), request=request)
    return {"ok": True, "eliminado": True}
