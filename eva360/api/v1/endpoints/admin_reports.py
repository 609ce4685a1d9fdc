# eva360/api/v1/endpoints/admin_reports.py
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from eva360.api.deps.admin import require_admin
from eva360.db.session import get_db
from eva360.schemas.reports import EvaluadoReportRow, SesionReportRow
from eva360.services import reports

router = APIRouter(tags=["admin-reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# 1) POR SESIÓN
@router.get("/evaluaciones", response_model=List[SesionReportRow])
def evaluaciones(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    """Promedio por dimensión de cada sesión finalizada (más recientes primero)."""
    return reports.per_session(db)


# 2) ACUMULADO POR EVALUADO
@router.get("/evaluaciones-por-evaluado", response_model=List[EvaluadoReportRow])
def evaluaciones_por_evaluado(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    """
    Promedio por dimensión sumando todas las respuestas de las sesiones
    finalizadas de cada código (no es promedio de promedios).
    """
    return reports.per_evaluated(db)


# 3) EXPORT EXCEL
@router.get("/evaluaciones/export.xlsx")
def evaluaciones_export(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    content = reports.export_workbook(db)
    return StreamingResponse(iter([content]),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="evaluaciones.xlsx"'})
