"""
Pydantic v2 schemas for the monthly plan endpoints (``/api/plan-mensual``).

Request bodies describe edits to the in-memory grid of an editing
session; responses serialise its rows, totals and the flat export.

Numeric grid fields (``ratio``, ``ha_prog``, ``jornales_prog``) travel as
text exactly as typed, since a row may transiently hold a value that is
not a number; the ``*_valor`` fields carry the coerced number.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.utils.constants import MODOS_JORNALES, OPERACIONES_DIA, OPERACIONES_FILA


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SesionAbrirRequest(BaseModel):
    """Payload accepted by ``POST /api/plan-mensual/sesiones``."""

    anio: int = Field(..., ge=2000, le=2100, description="Año del plan (ej. 2025).")
    mes: int = Field(..., ge=1, le=12, description="Mes del plan (1–12).")
    depto_id: int = Field(..., ge=1, description="ID del departamento a planificar.")

    model_config = ConfigDict(
        json_schema_extra={"example": {"anio": 2025, "mes": 3, "depto_id": 1}}
    )


class PeriodoRequest(BaseModel):
    anio: int = Field(..., ge=2000, le=2100)
    mes: int = Field(..., ge=1, le=12)


class DepartamentoRequest(BaseModel):
    depto_id: int = Field(..., ge=1)


class FilaResponse(BaseModel):
    """One grid row as shown to the client.

    Attributes:
        ui_id: Session-local identity of the row.
        jornales_prog: Effort text; in ``AUTO`` mode the derived value.
        jornales_valor: Effort coerced to a number.
        vacia: Row carries nothing to persist.
        valida: Row has a labor and positive effort.
    """

    ui_id: str
    fecha: datetime.date
    linea: int
    lote_id: str
    red_id: str
    sector_id: str
    subgrupo_labor: str
    codigo_labor: int | None
    ratio: str
    ha_prog: str
    modo_jornales: str
    jornales_prog: str
    jornales_valor: float
    obs: str
    obs_open: bool
    vacia: bool
    valida: bool


class DiaResponse(BaseModel):
    fecha: datetime.date
    ha: float = Field(..., description="Suma de hectáreas del día.")
    jornales: float = Field(..., description="Suma de jornales del día.")
    filas: list[FilaResponse]


class SesionResponse(BaseModel):
    """State of an editing session and its whole grid.

    Attributes:
        sesion_id: Identifier used in every ``/sesiones/{id}`` route.
        plan_id: Persisted plan backing the session.
        etiqueta_departamento: ``"name - crop"`` label.
        ha_total / jornales_total: Whole-plan totals.
        dias: Every day of the month, in order.
    """

    sesion_id: str
    plan_id: int
    anio: int
    mes: int
    depto_id: int
    etiqueta_departamento: str
    ha_total: float
    jornales_total: float
    dias: list[DiaResponse]


# ---------------------------------------------------------------------------
# Row edits
# ---------------------------------------------------------------------------


class FilaCambios(BaseModel):
    """Partial change of one row; only the fields sent are applied.

    Location changes cascade (a new lote clears red and sector; a new red
    clears sector); choosing a sector sets ``ha_prog`` from its area;
    choosing a labor sets its subgroup and default ratio. In ``AUTO`` mode
    the effort is rederived after every change.
    """

    lote_id: str | None = None
    red_id: str | None = None
    sector_id: str | None = None
    subgrupo_labor: str | None = None
    codigo_labor: int | None = None
    ha_prog: str | float | None = None
    ratio: str | float | None = None
    modo_jornales: str | None = Field(
        default=None, description=f"Modo de jornales: {MODOS_JORNALES}."
    )
    jornales_prog: str | float | None = Field(
        default=None, description="Jornales manuales; solo en modo MANUAL."
    )
    obs: str | None = None
    obs_open: bool | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"lote_id": "L05", "red_id": "R01", "sector_id": "L05_ARA_R01_S02"}
        }
    )


class ReplicarDiaRequest(BaseModel):
    """Copy or move a whole day.

    ``COPIAR_DIA``/``MOVER_DIA`` use ``destino``; ``COPIAR_RANGO``/
    ``MOVER_RANGO`` use ``inicio`` and ``fin`` (order does not matter).
    """

    operacion: str = Field(..., description=f"Operación: {OPERACIONES_DIA}.")
    origen: datetime.date
    destino: datetime.date | None = None
    inicio: datetime.date | None = None
    fin: datetime.date | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "operacion": "COPIAR_RANGO",
                "origen": "2025-03-01",
                "inicio": "2025-03-02",
                "fin": "2025-03-07",
            }
        }
    )


class ReplicarFilaRequest(BaseModel):
    operacion: str = Field(..., description=f"Operación: {OPERACIONES_FILA}.")
    inicio: datetime.date
    fin: datetime.date


class ReplicacionResponse(BaseModel):
    destinos: list[datetime.date] = Field(..., description="Fechas que recibieron filas.")
    filas: int = Field(..., description="Filas replicadas por fecha destino.")


class GuardadoResponse(BaseModel):
    """Result of ``POST /sesiones/{id}/guardar``.

    Attributes:
        guardadas: Rows written (0 when there was nothing to save).
        message: Human-readable summary.
    """

    guardadas: int
    message: str


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class TotalDia(BaseModel):
    fecha: datetime.date
    ha: float
    jornales: float


class TotalesResponse(BaseModel):
    ha: float = Field(..., description="Hectáreas programadas en el mes.")
    jornales: float = Field(..., description="Jornales programados en el mes.")
    por_dia: list[TotalDia]


class ResumenLaborItem(BaseModel):
    codigo_labor: int | None
    labor: str
    grupo: str
    ha: float
    jornales: float


class ResumenDia(BaseModel):
    """Calendar-cell summary of one day."""

    fecha: datetime.date
    cantidad: int = Field(..., description="Filas no vacías del día.")
    ha: float
    jornales: float
    items: list[ResumenLaborItem]


class CalendarioResponse(BaseModel):
    """Monday-first weeks of the month; ``None`` pads days of other months."""

    anio: int
    mes: int
    semanas: list[list[datetime.date | None]]
    resumen: list[ResumenDia]


class FilaExportacion(BaseModel):
    """One non-empty row of the flat export."""

    anio: int
    mes: int
    depto_id: int
    departamento: str
    cultivo: str
    fecha: datetime.date
    linea: int
    lote_id: str
    red_id: str
    sector_id: str
    codigo_labor: int | None
    labor: str
    subgrupo: str
    grupo: str
    ha_prog: float
    ratio: float
    jornales_prog: float
    modo: str
    obs: str
