# eva360/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eva360.db.session import check_db_connection, get_db

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

# health rápido de DB
@router.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    check_db_connection(db)
    return {"db": "ok"}
