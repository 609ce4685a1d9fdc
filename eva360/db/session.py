# eva360/db/session.py
import logging
import re
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eva360.core.config import settings
from eva360.core.errors import Internal

logger = logging.getLogger(__name__)


def _mask(u: str) -> str:
    """Enmascara la contraseña en la URL para logs seguros"""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", u)


def make_engine(db_url: str) -> Engine:
    """
    SQLite (archivo o memoria) para desarrollo/tests, cualquier otro motor con pool normal.
    En SQLite se activan las foreign keys por conexión para que ON DELETE CASCADE funcione.
    """
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(db_url, **kwargs)
        event.listen(engine, "connect", _sqlite_foreign_keys)
        return engine

    return create_engine(
        db_url,
        pool_size=5,              # 5 conexiones concurrentes
        max_overflow=10,          # Hasta 15 total en picos
        pool_timeout=30,          # 30s para obtener conexión
        pool_recycle=1800,        # Recicla cada 30 min
        pool_pre_ping=True,       # Verifica que la conexión esté viva
        echo=False,
    )


def _sqlite_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


db_url = settings.db_url
logger.info("[DB] Using: %s", _mask(db_url))

engine = make_engine(db_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency para FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _begin_write(db: Session) -> None:
    """
    En SQLite el lock de escritura se toma al inicio (BEGIN IMMEDIATE): dos
    transacciones sobre la misma sesión se serializan completas, lectura incluida.
    En otros motores basta el SELECT ... FOR UPDATE de cada servicio.
    """
    conn = db.connection()
    if conn.dialect.name != "sqlite":
        return
    raw = conn.connection.dbapi_connection
    if not raw.in_transaction:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Una operación lógica = una transacción. Commit al salir; ante cualquier error
    rollback completo, y los errores de SQLAlchemy se reportan como Internal.
    """
    try:
        _begin_write(db)
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Error de base de datos", context={"error": str(exc)}) from exc
    except Exception:
        db.rollback()
        raise


def check_db_connection(db: Session) -> bool:
    """Verifica que la conexión funcione"""
    row = db.execute(text("SELECT 1")).fetchone()
    return bool(row and row[0] == 1)
