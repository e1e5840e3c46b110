"""Value types shared by the grid engine.

Reference rows (``Ref*``) are frozen and hashable so that the catalogue
builder can memoise on them. ``FilaPlan`` is frozen too: every edit
produces a new row through ``dataclasses.replace``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from app.utils.constants import MODO_AUTO, MODO_MANUAL


def nuevo_ui_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Catalogue reference rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefLabor:
    codigo: int
    nombre: str
    grupo: str = ""
    subgrupo: str = ""
    um: str = ""
    ratio_default: float = 0.0


@dataclass(frozen=True)
class RefLote:
    lote_id: str
    cultivo: str = ""
    fundo: str = ""
    ha_total: float = 0.0


@dataclass(frozen=True)
class RefRed:
    lote_id: str
    red_id: str
    red_ref: str = ""


@dataclass(frozen=True)
class RefSector:
    lote_id: str
    red_id: str
    sector_id: str
    ha: float = 0.0
    variedad: str = ""


# ---------------------------------------------------------------------------
# Effort: mode and value as one tagged union
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JornalesAuto:
    """Effort derived from ``ha_prog × ratio``; it has no value of its own."""

    modo = MODO_AUTO


@dataclass(frozen=True)
class JornalesManual:
    """Free-entry effort, kept verbatim as typed (``texto``)."""

    texto: str = "0"
    modo = MODO_MANUAL


Jornales = Union[JornalesAuto, JornalesManual]


# ---------------------------------------------------------------------------
# Grid rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilaPlan:
    """One entry of the in-memory grid.

    ``ratio`` and ``ha_prog`` hold the raw text last entered, which may be
    transiently non-numeric; ``reglas.a_numero`` coerces them to 0.
    ``obs_open`` only drives the note editor and is never persisted.
    """

    fecha: date
    linea: int = 0
    ui_id: str = field(default_factory=nuevo_ui_id)
    lote_id: str = ""
    red_id: str = ""
    sector_id: str = ""
    subgrupo_labor: str = ""
    codigo_labor: int | None = None
    ratio: str = "0"
    ha_prog: str = "0"
    jornales: Jornales = field(default_factory=JornalesManual)
    obs: str = ""
    obs_open: bool = False

    @property
    def modo_jornales(self) -> str:
        return self.jornales.modo


@dataclass(frozen=True)
class FilaPersistida:
    """A detail row as read from (or written to) the plan store."""

    fecha: date
    linea: int
    lote_id: str | None = None
    red_id: str | None = None
    sector_id: str | None = None
    codigo_labor: int | None = None
    ratio: Any = 0
    ha_prog: Any = 0
    jornales_prog: Any = 0
    obs: str | None = None
