# eva360/db/base_class.py
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """Base declarativa de eva360; eva360.db.base importa aquí todos los modelos."""
