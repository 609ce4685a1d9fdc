# eva360/models/user.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, func, true

from eva360.db.base_class import Base

# usuarios administradores (password_hash: bcrypt o sha256 legacy)
class User(Base):
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    activo = Column(Boolean, nullable=False, default=True, server_default=true())
    creado_en = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    actualizado_en = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
