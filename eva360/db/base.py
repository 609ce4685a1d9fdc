# eva360/db/base.py
from eva360.db.base_class import Base  # noqa: F401

# Importa todos los modelos que definen tablas para que queden en Base.metadata
from eva360.models import organizacion  # noqa: F401
from eva360.models import encuesta  # noqa: F401
from eva360.models import codigo  # noqa: F401
from eva360.models import sesion  # noqa: F401
from eva360.models import user  # noqa: F401
from eva360.models import audit  # noqa: F401
