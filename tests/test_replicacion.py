"""
tests/test_replicacion.py — Day and row replication, single days and ranges.
"""

from datetime import date

import pytest

from app.grid.filas import PlanGrid
from app.grid.replicacion import (
    copiar_a_rango,
    copiar_dia,
    copiar_fila_a_rango,
    dias_en_rango,
    mover_a_rango,
    mover_dia,
    mover_fila_a_rango,
)


def d(dia: int) -> date:
    return date(2025, 3, dia)


def _grid_con(**filas_por_dia: list[str]) -> PlanGrid:
    """Grid whose rows are identified by their note text; keys are ``dNN``."""
    grid = PlanGrid(2025, 3)
    for clave, notas in filas_por_dia.items():
        fecha = d(int(clave[1:]))
        for nota in notas:
            fila = grid.agregar_fila(fecha)
            grid.actualizar_fila(fecha, fila.ui_id, {"obs": nota, "obs_open": True})
    return grid


def _notas(grid: PlanGrid, fecha: date) -> list[str]:
    return [f.obs for f in grid.filas_de(fecha)]


def test_copy_day_appends_fresh_copies():
    grid = _grid_con(d01=["a", "b"], d02=["x"])

    assert copiar_dia(grid, d(1), d(2)) == 2

    assert _notas(grid, d(2)) == ["x", "a", "b"]
    assert [f.linea for f in grid.filas_de(d(2))] == [1, 2, 3]
    assert _notas(grid, d(1)) == ["a", "b"]
    origen_ids = {f.ui_id for f in grid.filas_de(d(1))}
    copias = grid.filas_de(d(2))[1:]
    assert not origen_ids & {f.ui_id for f in copias}
    assert all(f.obs_open is False for f in copias)


def test_copy_day_noops():
    grid = _grid_con(d01=["a"])
    assert copiar_dia(grid, d(1), d(1)) == 0
    assert _notas(grid, d(1)) == ["a"]
    assert copiar_dia(grid, d(5), d(1)) == 0
    assert _notas(grid, d(1)) == ["a"]


def test_copy_day_rejects_destination_outside_month():
    grid = _grid_con(d01=["a"])
    with pytest.raises(ValueError):
        copiar_dia(grid, d(1), date(2025, 4, 1))


def test_move_day_empties_origin():
    grid = _grid_con(d01=["a"], d02=["x"])
    assert mover_dia(grid, d(1), d(2)) == 1
    assert _notas(grid, d(1)) == []
    assert _notas(grid, d(2)) == ["x", "a"]


def test_copy_then_move_back():
    grid = _grid_con(d01=["a1"], d02=["b1"])

    copiar_dia(grid, d(1), d(2))
    mover_dia(grid, d(2), d(1))

    assert _notas(grid, d(1)) == ["a1", "b1", "a1"]
    assert _notas(grid, d(2)) == []


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


def test_range_bounds_in_any_order():
    grid = PlanGrid(2025, 3)
    assert dias_en_rango(grid, d(5), d(3)) == [d(3), d(4), d(5)]
    assert dias_en_rango(grid, d(3), d(5), excluir=d(4)) == [d(3), d(5)]


def test_range_bound_outside_month_is_rejected():
    grid = PlanGrid(2025, 3)
    with pytest.raises(ValueError):
        dias_en_rango(grid, d(1), date(2025, 4, 2))


def test_copy_to_reversed_range():
    grid = _grid_con(d01=["a"])

    destinos = copiar_a_rango(grid, d(1), d(5), d(3))

    assert destinos == [d(3), d(4), d(5)]
    for dia in (3, 4, 5):
        assert _notas(grid, d(dia)) == ["a"]
    assert _notas(grid, d(2)) == []
    assert _notas(grid, d(1)) == ["a"]


def test_range_containing_origin_skips_it():
    grid = _grid_con(d03=["a"])

    destinos = copiar_a_rango(grid, d(3), d(2), d(4))

    assert destinos == [d(2), d(4)]
    assert _notas(grid, d(3)) == ["a"]


def test_move_to_range_empties_origin():
    grid = _grid_con(d01=["a", "b"])

    destinos = mover_a_rango(grid, d(1), d(10), d(11))

    assert destinos == [d(10), d(11)]
    assert _notas(grid, d(1)) == []
    assert _notas(grid, d(10)) == ["a", "b"]


def test_move_to_range_made_only_of_origin_keeps_it():
    grid = _grid_con(d07=["a"])
    assert mover_a_rango(grid, d(7), d(7), d(7)) == []
    assert _notas(grid, d(7)) == ["a"]


def test_empty_origin_copies_nothing():
    grid = PlanGrid(2025, 3)
    assert copiar_a_rango(grid, d(1), d(2), d(4)) == []
    assert grid.cantidad_filas() == 0


# ---------------------------------------------------------------------------
# Single rows
# ---------------------------------------------------------------------------


def test_copy_row_to_range():
    grid = _grid_con(d01=["a", "b"])
    fila_b = grid.filas_de(d(1))[1]

    destinos = copiar_fila_a_rango(grid, d(1), fila_b.ui_id, d(2), d(3))

    assert destinos == [d(2), d(3)]
    assert _notas(grid, d(2)) == ["b"]
    assert _notas(grid, d(1)) == ["a", "b"]


def test_move_row_to_range_removes_it_from_origin():
    grid = _grid_con(d01=["a", "b"])
    fila_a = grid.filas_de(d(1))[0]

    mover_fila_a_rango(grid, d(1), fila_a.ui_id, d(20), d(20))

    assert _notas(grid, d(1)) == ["b"]
    assert grid.filas_de(d(1))[0].linea == 1
    assert _notas(grid, d(20)) == ["a"]
