# eva360/core/credentials.py
"""
Verificación de contraseñas con dos estrategias, elegidas según la forma del hash guardado:

- legacy: SHA-256 hex sin sal (64 caracteres hex), heredado de las primeras cuentas.
- bcrypt: hash con sal, el formato actual. Todo hash nuevo se genera así.

Un login correcto contra un hash legacy debe re-hashearse con bcrypt (`needs_rehash`).
"""
from __future__ import annotations

import hashlib
import hmac
import re
from typing import Protocol

import bcrypt

from eva360.core.config import settings

_LEGACY_RE = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)
# bcrypt solo usa los primeros 72 bytes; se truncan explícitamente
BCRYPT_MAX_BYTES = 72


class CredentialStrategy(Protocol):
    name: str

    def matches(self, stored_hash: str) -> bool: ...

    def verify(self, password: str, stored_hash: str) -> bool: ...


class LegacyDigestStrategy:
    name = "sha256"

    def matches(self, stored_hash: str) -> bool:
        return bool(_LEGACY_RE.match(stored_hash or ""))

    def verify(self, password: str, stored_hash: str) -> bool:
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(digest, stored_hash.lower())


class BcryptStrategy:
    name = "bcrypt"

    def matches(self, stored_hash: str) -> bool:
        return (stored_hash or "").startswith(("$2a$", "$2b$", "$2y$"))

    def verify(self, password: str, stored_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_bcrypt_bytes(password), stored_hash.encode("utf-8"))
        except ValueError:
            return False


STRATEGIES: tuple[CredentialStrategy, ...] = (LegacyDigestStrategy(), BcryptStrategy())


def _bcrypt_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_bcrypt_bytes(password), salt).decode("utf-8")


def strategy_for(stored_hash: str) -> CredentialStrategy | None:
    return next((s for s in STRATEGIES if s.matches(stored_hash)), None)


def verify_password(password: str, stored_hash: str) -> bool:
    strategy = strategy_for(stored_hash)
    if strategy is None:
        return False
    return strategy.verify(password, stored_hash)


def needs_rehash(stored_hash: str) -> bool:
    strategy = strategy_for(stored_hash)
    return strategy is not None and strategy.name != BcryptStrategy.name
