# eva360/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from eva360.core.config import settings
from eva360.core.errors import Unauthorized

# Solo para docs/Swagger; los errores los levantamos nosotros (auto_error=False)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)
ADMIN_ROLE = "admin"
CLOCK_SKEW_SECONDS = 5


def create_access_token(claims: dict[str, Any], expires_minutes: int | None = None) -> str:
    """JWT de administrador firmado con JWT_SECRET; agrega 'iat' (epoch) y 'exp'."""
    ttl = settings.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    issued = datetime.now(timezone.utc)

    body = {**claims, "iat": int(issued.timestamp()), "exp": issued + timedelta(minutes=ttl)}
    if "sub" in body:
        body["sub"] = str(body["sub"])
    return jwt.encode(body, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
            leeway=CLOCK_SKEW_SECONDS,
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expirado")
    except jwt.InvalidTokenError:
        raise Unauthorized("Token inválido")


def get_current_claims(token: Optional[str] = Depends(oauth2_scheme)) -> dict[str, Any]:
    """Claims del Bearer token. No consulta la BD: el token es autocontenido."""
    if not token:
        raise Unauthorized("Token de autenticación requerido")
    payload = decode_token(token)
    if not payload.get("sub"):
        raise Unauthorized("Token sin sujeto")
    return payload


def claims_are_admin(claims: dict | None) -> bool:
    if not claims:
        return False
    raw = claims.get("roles") or claims.get("role") or []
    if isinstance(raw, str):
        raw = [raw]
    return ADMIN_ROLE in {str(r).lower() for r in raw}
