"""
Application-wide constants for the Plan Mensual de Jornales system.

Defines domain enumerations, persistence limits and lookup lists used
across routers, services, and the grid engine.
"""

from typing import Final

# ---------------------------------------------------------------------------
# User roles
# ---------------------------------------------------------------------------

ROL_ADMIN: Final[str] = "ADMIN"
ROL_JEFE: Final[str] = "JEFE"

ROLES: Final[list[str]] = [
    ROL_ADMIN,
    ROL_JEFE,
]

# ---------------------------------------------------------------------------
# Plan states
# ---------------------------------------------------------------------------

ESTADO_PLAN_BORRADOR: Final[str] = "BORRADOR"

ESTADOS_PLAN: Final[list[str]] = [
    ESTADO_PLAN_BORRADOR,
]

# ---------------------------------------------------------------------------
# Effort computation modes
# ---------------------------------------------------------------------------

MODO_AUTO: Final[str] = "AUTO"
MODO_MANUAL: Final[str] = "MANUAL"

MODOS_JORNALES: Final[list[str]] = [
    MODO_AUTO,
    MODO_MANUAL,
]

# ---------------------------------------------------------------------------
# Bulk replication operations
# ---------------------------------------------------------------------------

OPERACIONES_DIA: Final[list[str]] = [
    "COPIAR_DIA",
    "MOVER_DIA",
    "COPIAR_RANGO",
    "MOVER_RANGO",
]

OPERACIONES_FILA: Final[list[str]] = [
    "COPIAR",
    "MOVER",
]

# ---------------------------------------------------------------------------
# Calendar labels
# ---------------------------------------------------------------------------

# Spanish month abbreviations indexed 1–12 (index 0 unused)
MES_LABELS: Final[list[str]] = [
    "",
    "Ene", "Feb", "Mar", "Abr", "May", "Jun",
    "Jul", "Ago", "Sep", "Oct", "Nov", "Dic",
]

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

DECIMALES_JORNALES: Final[int] = 2
