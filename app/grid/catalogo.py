"""
Catalogue indexes for the department currently being planned.

``construir_catalogo`` is a pure derivation from the reference rows of one
department (labors, fields, networks, sectors). It is memoised on its
inputs, so rebuilding for a department whose reference data did not change
returns the very same ``CatalogoIndex``; nothing is ever updated in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from app.grid.modelos import RefLabor, RefLote, RefRed, RefSector
from app.grid.reglas import a_numero


@dataclass(frozen=True, eq=False)
class CatalogoIndex:
    """Read-only lookups over one department's reference data.

    Attributes:
        labores: Labors in catalogue order.
        lotes: Fields in catalogue order.
        labores_por_codigo: Labor by numeric code.
        subgrupos: Sorted distinct non-blank labor subgroups.
        redes_por_lote: Networks of each field, sorted by ``red_id``.
        sectores_por_lote_red: Sectors of each (field, network), sorted by
            ``sector_id``.
        ha_por_sector: Area of each (field, network, sector).
    """

    labores: tuple[RefLabor, ...]
    lotes: tuple[RefLote, ...]
    labores_por_codigo: Mapping[int, RefLabor]
    subgrupos: tuple[str, ...]
    redes_por_lote: Mapping[str, tuple[RefRed, ...]]
    sectores_por_lote_red: Mapping[tuple[str, str], tuple[RefSector, ...]]
    ha_por_sector: Mapping[tuple[str, str, str], float]

    def labor(self, codigo: int | None) -> RefLabor | None:
        if codigo is None:
            return None
        return self.labores_por_codigo.get(codigo)

    def labores_de_subgrupo(self, subgrupo: str) -> list[RefLabor]:
        """Labors offered for *subgrupo*; a blank subgroup offers all of them."""
        subgrupo = (subgrupo or "").strip()
        if not subgrupo:
            return list(self.labores)
        return [lab for lab in self.labores if lab.subgrupo.strip() == subgrupo]

    def redes_de(self, lote_id: str) -> tuple[RefRed, ...]:
        return self.redes_por_lote.get(lote_id, ())

    def sectores_de(self, lote_id: str, red_id: str) -> tuple[RefSector, ...]:
        return self.sectores_por_lote_red.get((lote_id, red_id), ())

    def ha_sector(self, lote_id: str, red_id: str, sector_id: str) -> float:
        return self.ha_por_sector.get((lote_id, red_id, sector_id), 0.0)

    def validar_ubicacion(self, lote_id: str, red_id: str, sector_id: str) -> None:
        """Check the Lote → Red → Sector hierarchy of a location.

        Raises:
            ValueError: If a network is set without its field, does not
                belong to the field, or the sector is not part of the
                (field, network) pair.
        """
        if red_id:
            if not lote_id:
                raise ValueError("No se puede elegir una red sin elegir antes el lote.")
            if red_id not in {r.red_id for r in self.redes_de(lote_id)}:
                raise ValueError(f"La red '{red_id}' no pertenece al lote '{lote_id}'.")
        if sector_id:
            if not red_id:
                raise ValueError("No se puede elegir un sector sin elegir antes la red.")
            if (lote_id, red_id, sector_id) not in self.ha_por_sector:
                raise ValueError(
                    f"El sector '{sector_id}' no pertenece al lote '{lote_id}' / red '{red_id}'."
                )


@lru_cache(maxsize=32)
def construir_catalogo(
    labores: tuple[RefLabor, ...],
    lotes: tuple[RefLote, ...],
    redes: tuple[RefRed, ...],
    sectores: tuple[RefSector, ...],
) -> CatalogoIndex:
    """Build every catalogue index from the department's reference rows."""
    por_codigo = {lab.codigo: lab for lab in labores}
    subgrupos = sorted({lab.subgrupo.strip() for lab in labores if lab.subgrupo.strip()})

    redes_por_lote: dict[str, list[RefRed]] = {}
    for red in redes:
        redes_por_lote.setdefault(red.lote_id, []).append(red)

    sectores_por_par: dict[tuple[str, str], list[RefSector]] = {}
    ha_por_sector: dict[tuple[str, str, str], float] = {}
    for sector in sectores:
        sectores_por_par.setdefault((sector.lote_id, sector.red_id), []).append(sector)
        ha_por_sector[(sector.lote_id, sector.red_id, sector.sector_id)] = a_numero(sector.ha)

    return CatalogoIndex(
        labores=labores,
        lotes=lotes,
        labores_por_codigo=MappingProxyType(por_codigo),
        subgrupos=tuple(subgrupos),
        redes_por_lote=MappingProxyType({
            k: tuple(sorted(v, key=lambda r: r.red_id)) for k, v in redes_por_lote.items()
        }),
        sectores_por_lote_red=MappingProxyType({
            k: tuple(sorted(v, key=lambda s: s.sector_id)) for k, v in sectores_por_par.items()
        }),
        ha_por_sector=MappingProxyType(ha_por_sector),
    )


CATALOGO_VACIO = construir_catalogo((), (), (), ())


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

_SUFIJOS_CULTIVO = re.compile(r"_PALTO|_PAL|_ARANDANOS|_ARANDANO|_ARA", re.IGNORECASE)


def norm_key(valor: object) -> str:
    return str(valor if valor is not None else "").strip().upper()


def formatear_red(raw: str) -> str:
    """Short network label: ``"R01_L01_Pal:R01"`` -> ``"R01_L01"``."""
    if not raw:
        return ""
    texto = raw.split(":")[0]
    texto = _SUFIJOS_CULTIVO.sub("", texto)
    texto = re.sub(r"__+", "_", texto)
    return re.sub(r"_$", "", texto)


def formatear_sector(raw: str) -> str:
    """Short sector label: ``"L05_ARA_R01_S02"`` -> ``"S2"``."""
    texto = str(raw or "").strip()
    if not texto:
        return ""
    m = re.search(r"(?:_|-)S(\d+)$", texto, re.IGNORECASE) or re.search(r"S(\d+)", texto, re.IGNORECASE)
    if m:
        return f"S{int(m.group(1))}"
    return texto


def etiqueta_departamento(departamento: str | None, cultivo: str | None) -> str:
    """``"name - crop"``, or just the name when it already mentions the crop."""
    dep = (departamento or "").strip()
    cul = (cultivo or "").strip()
    if not cul or cul.upper() in dep.upper():
        return dep
    return f"{dep} - {cul}"
