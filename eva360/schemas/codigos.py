from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, conint, field_validator

from eva360.schemas.captura import _normalize_code


class CodigoCreateIn(BaseModel):
    encuesta_id: Optional[conint(ge=1)] = None
    evaluado_nombre: str = Field(min_length=1, max_length=200)
    codigo: Optional[str] = None

    @field_validator("evaluado_nombre")
    @classmethod
    def strip_nombre(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("evaluado_nombre es requerido")
        return v

    @field_validator("codigo")
    @classmethod
    def normalize_codigo(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_code(v) if v is not None else None


class CodigoUpdateIn(BaseModel):
    evaluado_nombre: Optional[str] = Field(default=None, max_length=200)
    activo: Optional[bool] = None
    codigo: Optional[str] = None

    @field_validator("evaluado_nombre")
    @classmethod
    def strip_nombre(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("evaluado_nombre no puede estar vacío")
        return v

    @field_validator("codigo")
    @classmethod
    def normalize_codigo(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_code(v) if v is not None else None


class CodigoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    encuesta_id: int
    equipo_id: int
    codigo: str
    activo: bool
    evaluado_nombre: Optional[str] = None


class CodigoDeleteOut(BaseModel):
    ok: bool = True
    eliminado: Optional[bool] = None
    desactivado: Optional[bool] = None
    message: Optional[str] = None
