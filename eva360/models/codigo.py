# eva360/models/codigo.py
from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, true
from sqlalchemy.orm import relationship

from eva360.db.base_class import Base

class EvaluationCode(Base):
    """Código canjeable: une una encuesta con la persona evaluada."""
    __tablename__ = "encuesta_equipo"

    id = Column(Integer, primary_key=True)
    encuesta_id = Column(Integer, ForeignKey("encuestas.id"), nullable=False, index=True)
    equipo_id = Column(Integer, ForeignKey("equipos.id"), nullable=False, index=True)
    codigo = Column(String(20), unique=True, nullable=False)  # siempre en mayúsculas
    activo = Column(Boolean, nullable=False, default=True, server_default=true())
    evaluado_nombre = Column(String(200), nullable=True)

    encuesta = relationship("Survey")
    sesiones = relationship("EvaluationSession", back_populates="codigo_ref", passive_deletes=True)
