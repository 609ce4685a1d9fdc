# eva360/services/tokens.py
from __future__ import annotations

import secrets

# 24 bytes = 192 bits de aleatoriedad, 48 caracteres hex
TOKEN_BYTES = 24


class SessionToken(str):
    """
    Credencial opaca del respondente. Nunca se deriva del id de la sesión:
    se genera con `secrets` y poseerla es la única prueba de acceso.
    """
    __slots__ = ()

    @classmethod
    def generate(cls) -> "SessionToken":
        return cls(secrets.token_hex(TOKEN_BYTES))

    def __repr__(self) -> str:
        return "SessionToken('***')"
