# eva360/core/errors.py
from __future__ import annotations
from typing import Any, Optional


class Eva360Error(Exception):
    """
    Error de dominio con un código estable y el status HTTP que le corresponde.
    `context` viaja al log; solo `public` se agrega a la respuesta.
    """
    code = "internal"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict[str, Any]] = None,
        public: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.public = public or {}

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.public}


class NotFound(Eva360Error):
    code = "not_found"
    status_code = 404


class Conflict(Eva360Error):
    code = "conflict"
    status_code = 409


class Incomplete(Eva360Error):
    code = "incomplete"
    status_code = 400


class InvalidReference(Eva360Error):
    code = "invalid_reference"
    status_code = 400


class InvalidValue(Eva360Error):
    code = "invalid_value"
    status_code = 400


class NoOp(Eva360Error):
    code = "no_op"
    status_code = 400


class Unauthorized(Eva360Error):
    code = "unauthorized"
    status_code = 401


class Exhausted(Eva360Error):
    code = "exhausted"
    status_code = 500


class Internal(Eva360Error):
    code = "internal"
    status_code = 500


class Forbidden(Eva360Error):
    code = "forbidden"
    status_code = 403
