# eva360/models/sesion.py
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String,
    UniqueConstraint, false, func,
)
from sqlalchemy.orm import relationship

from eva360.db.base_class import Base

class EvaluationSession(Base):
    __tablename__ = "sesiones_equipo"

    id = Column(Integer, primary_key=True)
    encuesta_equipo_id = Column(Integer, ForeignKey("encuesta_equipo.id"), nullable=False, index=True)
    token_sesion = Column(String(64), unique=True, nullable=False)  # credencial opaca del respondente
    finalizada = Column(Boolean, nullable=False, default=False, server_default=false())  # false -> true, nunca al revés
    creado_en = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    codigo_ref = relationship("EvaluationCode", back_populates="sesiones")
    respuestas = relationship("Response", back_populates="sesion", passive_deletes=True)


class Response(Base):
    __tablename__ = "respuestas"
    __table_args__ = (
        UniqueConstraint("sesion_id", "pregunta_id", name="uq_respuesta_sesion_pregunta"),
        CheckConstraint("valor BETWEEN 1 AND 5", name="ck_respuesta_valor_1_5"),
    )

    id = Column(Integer, primary_key=True)
    sesion_id = Column(Integer, ForeignKey("sesiones_equipo.id", ondelete="CASCADE"), nullable=False, index=True)
    pregunta_id = Column(Integer, ForeignKey("preguntas.id"), nullable=False, index=True)
    valor = Column(Integer, nullable=False)
    actualizado_en = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    sesion = relationship("EvaluationSession", back_populates="respuestas")
