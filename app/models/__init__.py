"""SQLAlchemy models package for Plan Mensual de Jornales.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` runs.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Plan, PlanDetalle
"""

# Reference catalogue (read-only for the plan engine)
from app.models.departamento import Departamento  # noqa: F401
from app.models.jefe_acceso import JefeAcceso  # noqa: F401
from app.models.labor import Labor  # noqa: F401
from app.models.lote import Lote, Red, Sector  # noqa: F401

# Plan and its detail
from app.models.plan import Plan, PlanDetalle  # noqa: F401

# Append-only snapshots
from app.models.plan_version import PlanDetalleVersion, PlanVersion  # noqa: F401

# Cross-cutting concerns
from app.models.usuario import Usuario  # noqa: F401

__all__ = [
    "Departamento",
    "JefeAcceso",
    "Labor",
    "Lote",
    "Red",
    "Sector",
    "Plan",
    "PlanDetalle",
    "PlanVersion",
    "PlanDetalleVersion",
    "Usuario",
]
