"""
Pydantic v2 schemas for the catalogue endpoints (``/api/catalogos``).

These are the option lists a client needs to fill the grid selectors of
one department: labors grouped by subgroup, fields, and the networks and
sectors of each field.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DepartamentoOpcion(BaseModel):
    """Selectable department, already deduplicated by (name, crop).

    Attributes:
        id: Primary key of the representative ``deptos`` row.
        departamento: Department name.
        cultivo: Crop, if any.
        jefe: Supervisor copied onto new plans.
        fundo: Estate.
        etiqueta: Display label, ``"name - crop"``.
    """

    id: int
    departamento: str
    cultivo: str | None = None
    jefe: str | None = None
    fundo: str | None = None
    etiqueta: str = Field(..., description="Etiqueta para el selector (departamento - cultivo).")


class LaborItem(BaseModel):
    codigo: int
    nombre: str
    grupo: str = ""
    subgrupo: str = ""
    um: str = ""
    ratio_default: float = Field(0.0, description="Jornales por hectárea sugeridos.")


class SectorItem(BaseModel):
    sector_id: str
    etiqueta: str = Field(..., description="Etiqueta corta, ej. 'S2'.")
    ha: float
    variedad: str = ""


class RedItem(BaseModel):
    red_id: str
    etiqueta: str = Field(..., description="Etiqueta corta de la red.")
    red_ref: str = ""
    sectores: list[SectorItem] = Field(default_factory=list)


class LoteItem(BaseModel):
    lote_id: str
    cultivo: str = ""
    fundo: str = ""
    ha_total: float = 0.0
    redes: list[RedItem] = Field(default_factory=list)


class CatalogoResponse(BaseModel):
    """Full catalogue of one department.

    Attributes:
        depto_id: Department the catalogue belongs to.
        subgrupos: Sorted distinct labor subgroups.
        labores: Active labors of the department and crop.
        lotes: Active fields of the crop with their networks and sectors.
    """

    depto_id: int
    subgrupos: list[str]
    labores: list[LaborItem]
    lotes: list[LoteItem]
