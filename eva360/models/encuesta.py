# eva360/models/encuesta.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from eva360.db.base_class import Base

class Survey(Base):
    __tablename__ = "encuestas"
    id = Column(Integer, primary_key=True)
    nombre = Column(String(255), nullable=False)

    preguntas = relationship("Question", back_populates="encuesta", order_by="Question.id")

class Question(Base):
    __tablename__ = "preguntas"
    id = Column(Integer, primary_key=True)
    encuesta_id = Column(Integer, ForeignKey("encuestas.id"), nullable=False, index=True)
    texto = Column(Text, nullable=False)
    dimension = Column(String(50), nullable=False, index=True)  # COM, TEQ, MOT... texto libre

    encuesta = relationship("Survey", back_populates="preguntas")
