# eva360/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eva360.core.config import settings
from eva360.db.session import get_db
from eva360.schemas.auth import LoginIn, TokenOut
from eva360.services import users

router = APIRouter(prefix="/auth", tags=["auth"])


def _expires_label() -> str:
    minutes = settings.JWT_EXPIRE_MINUTES
    return f"{minutes // 60}h" if minutes % 60 == 0 else f"{minutes}m"


@router.post("/login", response_model=TokenOut)
def login(data: LoginIn, db: Session = Depends(get_db)):
    """
    Login de administrador. Devuelve un JWT Bearer para las rutas /admin.
    """
    token = users.authenticate(db, data.username, data.password)
    return TokenOut(token=token, expiresIn=_expires_label())
