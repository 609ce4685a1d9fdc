# eva360/models/organizacion.py
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from eva360.db.base_class import Base

class Company(Base):
    __tablename__ = "empresas"
    id = Column(Integer, primary_key=True)
    nombre = Column(String(200), nullable=False)

class Team(Base):
    __tablename__ = "equipos"
    id = Column(Integer, primary_key=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id"), nullable=False, index=True)
    nombre = Column(String(200), nullable=False)

    empresa = relationship("Company")
