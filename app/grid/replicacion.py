"""
Bulk date replication over a ``PlanGrid``.

All operations are in-memory only; nothing is persisted until the plan is
saved.

Design notes
------------
- Every copy receives a fresh ``ui_id`` and a hidden note; content
  (location, labor, values, mode, note text) is carried over unchanged.
- A range is resolved from the positions of ``inicio`` and ``fin`` in the
  month's day sequence, taking ``min``/``max`` so reversed bounds still
  yield the forward-ordered interval. The origin is never a target.
- Moves are true moves: the origin day is emptied (or the origin row
  removed) after the targets receive their copies. When the resolved
  target set is empty nothing happens and the origin is kept.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from app.grid.filas import PlanGrid
from app.grid.modelos import FilaPlan, nuevo_ui_id

logger = logging.getLogger(__name__)


def _copia(fila: FilaPlan) -> FilaPlan:
    return replace(fila, ui_id=nuevo_ui_id(), obs_open=False)


def _anexar(grid: PlanGrid, destino: date, filas: list[FilaPlan]) -> None:
    grid.reemplazar_dia(destino, [*grid.filas_de(destino), *(_copia(f) for f in filas)])


# ---------------------------------------------------------------------------
# Day to day
# ---------------------------------------------------------------------------


def copiar_dia(grid: PlanGrid, origen: date, destino: date) -> int:
    """Append copies of every row of *origen* to *destino*.

    Returns:
        Number of rows copied (0 when origin equals destination or the
        origin day is empty).
    """
    if origen == destino:
        return 0
    filas = grid.filas_de(origen)
    grid.filas_de(destino)
    if not filas:
        return 0
    _anexar(grid, destino, filas)
    return len(filas)


def mover_dia(grid: PlanGrid, origen: date, destino: date) -> int:
    """Append the rows of *origen* to *destino* and empty *origen*."""
    movidas = copiar_dia(grid, origen, destino)
    if movidas:
        grid.reemplazar_dia(origen, [])
    return movidas


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


def dias_en_rango(grid: PlanGrid, inicio: date, fin: date, excluir: date | None = None) -> list[date]:
    """Days of the month between *inicio* and *fin*, inclusive, in forward order.

    Raises:
        ValueError: If either bound is not a day of the grid's month.
    """
    dias = list(grid.dias)
    try:
        a, b = dias.index(inicio), dias.index(fin)
    except ValueError:
        raise ValueError(
            f"El rango {inicio.isoformat()} - {fin.isoformat()} no pertenece al periodo."
        ) from None
    desde, hasta = min(a, b), max(a, b)
    return [d for d in dias[desde : hasta + 1] if d != excluir]


def copiar_a_rango(grid: PlanGrid, origen: date, inicio: date, fin: date) -> list[date]:
    """Append copies of *origen*'s rows to every day of the range.

    Returns:
        The days that received rows.
    """
    filas = grid.filas_de(origen)
    destinos = dias_en_rango(grid, inicio, fin, excluir=origen)
    if not filas or not destinos:
        return []
    for destino in destinos:
        _anexar(grid, destino, filas)
    return destinos


def mover_a_rango(grid: PlanGrid, origen: date, inicio: date, fin: date) -> list[date]:
    destinos = copiar_a_rango(grid, origen, inicio, fin)
    if destinos:
        grid.reemplazar_dia(origen, [])
    return destinos


def copiar_fila_a_rango(
    grid: PlanGrid, origen: date, ui_id: str, inicio: date, fin: date
) -> list[date]:
    """Append a copy of one row to every day of the range."""
    fila = grid.buscar_fila(origen, ui_id)
    destinos = dias_en_rango(grid, inicio, fin, excluir=origen)
    for destino in destinos:
        _anexar(grid, destino, [fila])
    return destinos


def mover_fila_a_rango(
    grid: PlanGrid, origen: date, ui_id: str, inicio: date, fin: date
) -> list[date]:
    destinos = copiar_fila_a_rango(grid, origen, ui_id, inicio, fin)
    if destinos:
        grid.quitar_fila(origen, ui_id)
    return destinos
