from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator

CODE_RE = re.compile(r"^[A-Z0-9]{1,20}$")


def _normalize_code(v: str) -> str:
    v = (v or "").strip().upper()
    if not CODE_RE.match(v):
        raise ValueError("codigo debe tener entre 1 y 20 caracteres, solo letras y números")
    return v


# ---------- Entradas ----------

class RedeemIn(BaseModel):
    codigo: str

    @field_validator("codigo")
    @classmethod
    def normalize_codigo(cls, v: str) -> str:
        return _normalize_code(v)


class RespuestaIn(BaseModel):
    pregunta_id: int
    valor: StrictInt  # sin coerción de "4" o 4.0; el rango 1..5 se valida en el servicio


class SubmitIn(BaseModel):
    token_sesion: str = Field(min_length=1, max_length=200)
    respuestas: List[RespuestaIn] = Field(min_length=1)

    @field_validator("token_sesion")
    @classmethod
    def strip_token(cls, v: str) -> str:
        return v.strip()


class FinalizeIn(BaseModel):
    token_sesion: str = Field(min_length=1, max_length=200)
    strict: bool = False

    @field_validator("token_sesion")
    @classmethod
    def strip_token(cls, v: str) -> str:
        return v.strip()


# ---------- Salidas ----------

class PreguntaOut(BaseModel):
    id: int
    texto: str
    dimension: str


class MetaOut(BaseModel):
    escala: List[int]


class RedeemOut(BaseModel):
    sesion_id: int
    session_id: int  # alias de sesion_id para clientes nuevos
    token_sesion: str
    encuesta_id: int
    equipo_id: int
    evaluado_nombre: Optional[str] = None
    preguntas: List[PreguntaOut]
    meta: MetaOut


class SubmitOut(BaseModel):
    ok: bool = True
    inserted: int
    updated: int


class FinalizeOut(BaseModel):
    ok: bool = True
    finalizada: bool = True
