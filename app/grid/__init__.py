"""In-memory engine for the monthly labor plan grid.

The modules in this package never touch the database: they hold the
rows of the open plan keyed by date (``filas``), derive effort values
(``reglas``), index the department catalogue (``catalogo``) and replicate
rows between dates (``replicacion``). Persistence lives in
``app.services.plan_service`` and ``app.services.version_service``.
"""

from app.grid.catalogo import CatalogoIndex, construir_catalogo  # noqa: F401
from app.grid.errores import (  # noqa: F401
    CargaError,
    FilaNoEncontradaError,
    OperacionEnCursoError,
    PersistenciaError,
    PlanError,
    ValidacionError,
)
from app.grid.filas import PlanGrid  # noqa: F401
from app.grid.modelos import FilaPersistida, FilaPlan, JornalesAuto, JornalesManual  # noqa: F401

__all__ = [
    "CatalogoIndex",
    "construir_catalogo",
    "CargaError",
    "FilaNoEncontradaError",
    "OperacionEnCursoError",
    "PersistenciaError",
    "PlanError",
    "ValidacionError",
    "PlanGrid",
    "FilaPersistida",
    "FilaPlan",
    "JornalesAuto",
    "JornalesManual",
]
