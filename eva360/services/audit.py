# eva360/services/audit.py
from __future__ import annotations
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from eva360.core.logging import sanitize_for_log
from eva360.models.audit import AuditLog


def _client_of(request: Optional[Request]) -> tuple[Optional[str], Optional[str]]:
    if request is None:
        return None, None
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


def audit_log(
    db: Session,
    *,
    actor: Optional[str],
    accion: str,
    payload: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """
    Agrega una fila de auditoría a la transacción en curso (sin commit).
    Si la operación hace rollback, la fila se descarta con ella.
    """
    ip, ua = _client_of(request)
    entry = AuditLog(actor=actor, accion=accion, payload=sanitize_for_log(payload), ip=ip, ua=ua)
    db.add(entry)
    return entry
