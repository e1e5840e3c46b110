"""
Pydantic v2 schemas for the plan versions endpoints (``/api/plan-versiones``).

Versions are read-only once created; there are no update schemas.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class VersionCrearRequest(BaseModel):
    comentario: str | None = Field(
        default=None, max_length=1000, description="Comentario libre de la versión."
    )


class VersionResponse(BaseModel):
    """Header of one plan snapshot.

    Attributes:
        id: Primary key.
        plan_id: Snapshotted plan.
        secuencia: 1-based sequence within the plan.
        created_at: Snapshot timestamp.
        created_by: Email of the user who created it.
        comentario: Optional comment.
        filas: Detail rows copied into the snapshot.
    """

    id: int
    plan_id: int
    depto_id: int
    anio: int
    mes: int
    secuencia: int
    created_at: datetime.datetime
    created_by: str | None = None
    comentario: str | None = None
    filas: int = 0

    model_config = ConfigDict(from_attributes=True)


class VersionListResponse(BaseModel):
    """Versions of a plan, most recent first.

    Attributes:
        seleccionada_id: Id of the most recent version (default selection),
            or ``None`` if the plan has no versions.
    """

    versiones: list[VersionResponse]
    seleccionada_id: int | None = None


class DetalleVersionFila(BaseModel):
    fecha: datetime.date
    linea: int
    lote_id: str | None = None
    red_id: str | None = None
    sector_id: str | None = None
    codigo_labor: int | None = None
    labor: str = ""
    grupo: str = ""
    subgrupo: str = ""
    ratio: float
    ha_prog: float
    jornales_prog: float
    obs: str | None = None


class TotalFechaVersion(BaseModel):
    fecha: datetime.date
    cantidad: int
    ha: float
    jornales: float


class DetalleVersionResponse(BaseModel):
    version: VersionResponse
    filas: list[DetalleVersionFila]
    por_fecha: list[TotalFechaVersion]
    ha_total: float
    jornales_total: float
