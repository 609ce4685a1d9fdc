from typing import Dict, Optional
from pydantic import BaseModel, Field

class SesionReportRow(BaseModel):
    sesion_id: int
    codigo: str
    evaluado_nombre: Optional[str] = None
    por_area: Dict[str, float] = Field(default_factory=dict)

class EvaluadoReportRow(BaseModel):
    evaluado_id: int
    codigo: str
    evaluado_nombre: Optional[str] = None
    por_area: Dict[str, float] = Field(default_factory=dict)
