# eva360/services/users.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eva360.core.config import settings
from eva360.core.credentials import hash_password, needs_rehash, verify_password
from eva360.core.errors import Conflict, Internal, NoOp, NotFound, Unauthorized
from eva360.core.logging import fmt
from eva360.core.security import ADMIN_ROLE, create_access_token
from eva360.db.session import atomic
from eva360.models.user import User
from eva360.services.audit import audit_log

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("Usuario no encontrado", context={"id": user_id})
    return user


def _bootstrap_login(username: str, password: str) -> Optional[str]:
    """Credencial de arranque configurada por entorno; solo sirve si no hay fila con ese username."""
    if not settings.BOOTSTRAP_ADMIN_USERNAME or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None
    if username != settings.BOOTSTRAP_ADMIN_USERNAME or password != settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None
    logger.info(fmt("Login exitoso (admin de arranque)", {"username": username}))
    return create_access_token({"sub": username, "username": username, "role": ADMIN_ROLE})


def authenticate(db: Session, username: str, password: str) -> str:
    """Valida credenciales y devuelve un JWT de administrador. Migra hashes legacy a bcrypt."""
    username = username.strip()
    user = db.query(User).filter(User.username == username).first()

    if not user:
        token = _bootstrap_login(username, password)
        if token:
            return token
        logger.warning(fmt("Intento de login fallido - usuario no encontrado", {"username": username}))
        raise Unauthorized("Credenciales inválidas")

    if not user.activo:
        logger.warning(fmt("Intento de login fallido - usuario inactivo", {"username": username}))
        raise Unauthorized("Usuario inactivo")

    if not verify_password(password, user.password_hash):
        logger.warning(fmt("Intento de login fallido - contraseña incorrecta", {"username": username}))
        raise Unauthorized("Credenciales inválidas")

    if needs_rehash(user.password_hash):
        try:
            with atomic(db):
                user.password_hash = hash_password(password)
            logger.info(fmt("Hash de contraseña migrado a bcrypt", {"userId": user.id}))
        except Internal:
            # el login sigue siendo válido; se reintenta la migración en el próximo
            logger.error(fmt("Error migrando hash de contraseña", {"userId": user.id}), exc_info=True)

    logger.info(fmt("Login exitoso", {"username": user.username, "userId": user.id}))
    return create_access_token({
        "sub": str(user.id), "username": user.username, "userId": user.id, "role": ADMIN_ROLE,
    })


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id.desc()).all()


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> User:
    username = username.strip()
    user = User(username=username, password_hash=hash_password(password), activo=True)
    db.add(user)
    audit_log(db, actor=actor, accion="usuario.crear", payload={"username": username}, request=request)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("El nombre de usuario ya existe", context={"username": username})
    db.refresh(user)
    logger.info(fmt("Usuario creado", {"id": user.id, "username": username}))
    return user


def update_user(
    db: Session,
    user_id: int,
    *,
    username: Optional[str] = None,
    password: Optional[str] = None,
    activo: Optional[bool] = None,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> User:
    with atomic(db):
        user = _get_user(db, user_id)
        changes: dict = {}

        if username is not None:
            username = username.strip().lower()
            duplicate = (
                db.query(User.id)
                .filter(User.username == username, User.id != user_id)
                .first()
            )
            if duplicate:
                raise Conflict("El nombre de usuario ya existe", context={"username": username})
            changes["username"] = username

        if password is not None and password.strip():
            changes["password_hash"] = hash_password(password)

        if activo is not None:
            changes["activo"] = bool(activo)

        if not changes:
            raise NoOp("No hay campos para actualizar", context={"id": user_id})

        for attr, value in changes.items():
            setattr(user, attr, value)
        user.actualizado_en = func.now()
        audit_log(db, actor=actor, accion="usuario.actualizar",
                  payload={"id": user_id, "campos": sorted(changes)}, request=request)
        db.flush()

    db.refresh(user)
    logger.info(fmt("Usuario actualizado", {"id": user_id}))
    return user


def delete_user(
    db: Session,
    user_id: int,
    *,
    actor: Optional[str] = None,
    request: Optional[Request] = None,
) -> None:
    with atomic(db):
        user = _get_user(db, user_id)
        username = user.username
        db.delete(user)
        audit_log(db, actor=actor, accion="usuario.eliminar",
                  payload={"id": user_id, "username": username}, request=request)
    logger.info(fmt("Usuario eliminado", {"id": user_id, "username": username}))
