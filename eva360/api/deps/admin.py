# eva360/api/deps/admin.py
from fastapi import Depends

from eva360.core.errors import Forbidden
from eva360.core.security import claims_are_admin, get_current_claims


def require_admin(claims: dict = Depends(get_current_claims)) -> dict:
    """
    Exige un JWT válido con rol 'admin'. Devuelve los claims (sub, username, role).
    """
    if not claims_are_admin(claims):
        raise Forbidden("Solo administradores")
    return claims
