# eva360/models/audit.py
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func
from eva360.db.base_class import Base

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id        = Column(Integer, primary_key=True)
    actor     = Column(String(50), index=True, nullable=True)  # username del admin
    accion    = Column(String(100), nullable=False)
    payload   = Column(JSON, nullable=True)
    ip        = Column(String(64), nullable=True)
    ua        = Column(Text, nullable=True)
    creado_en = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
