from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

class LoginIn(BaseModel):
    username: str = Field(min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=1, max_length=200)

class TokenOut(BaseModel):
    ok: bool = True
    token: str
    expiresIn: str

class UsuarioCreateIn(BaseModel):
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=4, max_length=200)

class UsuarioUpdateIn(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: Optional[str] = Field(default=None, min_length=4, max_length=200)
    activo: Optional[bool] = None

class UsuarioOut(BaseModel):
    # Permite construir desde objetos SQLAlchemy (Pydantic v2); nunca expone el hash
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    activo: bool
    creado_en: Optional[datetime] = None
    actualizado_en: Optional[datetime] = None
