"""
Day-keyed row store of the open plan.

``PlanGrid`` owns the rows of exactly the days of its (anio, mes) and keeps
each day's ``linea`` values contiguous from 1: every structural change
renumbers the whole day.

Load tokens
-----------
Detail loads run outside the store (a database round-trip) while the
period or department may change again. A load therefore takes a token
from ``emitir_token()`` before querying and hands it back to
``aplicar_carga()``; the result is dropped unless no newer token was
issued and no period/department change happened in between.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import date
from typing import Any

from app.grid.catalogo import CatalogoIndex
from app.grid.errores import FilaNoEncontradaError
from app.grid.modelos import FilaPersistida, FilaPlan, JornalesManual, nuevo_ui_id
from app.grid.reglas import a_numero, numero_a_texto, resetear_fila, valor_jornales

logger = logging.getLogger(__name__)


def generar_dias_del_mes(anio: int, mes: int) -> list[date]:
    ultimo = calendar.monthrange(anio, mes)[1]
    return [date(anio, mes, d) for d in range(1, ultimo + 1)]


def semanas_calendario(anio: int, mes: int) -> list[list[date | None]]:
    """Monday-first weeks of the month; cells outside the month are ``None``."""
    semanas = calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(anio, mes)
    return [[d if d.month == mes else None for d in semana] for semana in semanas]


def _renumerar(fecha: date, filas: Iterable[FilaPlan]) -> list[FilaPlan]:
    return [replace(f, linea=i, fecha=fecha) for i, f in enumerate(filas, start=1)]


class PlanGrid:
    """Mapping from each day of one month to its ordered list of rows.

    Args:
        anio: Calendar year.
        mes: Month number (1–12).
    """

    def __init__(self, anio: int, mes: int) -> None:
        self._anio = anio
        self._mes = mes
        self._dias: tuple[date, ...] = tuple(generar_dias_del_mes(anio, mes))
        self._filas: dict[date, list[FilaPlan]] = {d: [] for d in self._dias}
        self._token = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def anio(self) -> int:
        return self._anio

    @property
    def mes(self) -> int:
        return self._mes

    @property
    def dias(self) -> tuple[date, ...]:
        return self._dias

    def contiene(self, fecha: date) -> bool:
        return fecha in self._filas

    def filas_de(self, fecha: date) -> list[FilaPlan]:
        return list(self._dia(fecha))

    def todas(self) -> list[FilaPlan]:
        """Every row, by date then line."""
        return [f for d in self._dias for f in self._filas[d]]

    def buscar_fila(self, fecha: date, ui_id: str) -> FilaPlan:
        return self._dia(fecha)[self._indice(fecha, ui_id)]

    def cantidad_filas(self) -> int:
        return sum(len(v) for v in self._filas.values())

    def totales(self) -> tuple[float, float]:
        """Whole-plan ``(ha, jornales)`` sums."""
        filas = self.todas()
        return (
            sum(a_numero(f.ha_prog) for f in filas),
            sum(valor_jornales(f) for f in filas),
        )

    def totales_por_dia(self) -> dict[date, tuple[float, float]]:
        return {
            d: (
                sum(a_numero(f.ha_prog) for f in self._filas[d]),
                sum(valor_jornales(f) for f in self._filas[d]),
            )
            for d in self._dias
        }

    # ------------------------------------------------------------------
    # Row operations
    # ------------------------------------------------------------------

    def agregar_fila(self, fecha: date) -> FilaPlan:
        filas = self._dia(fecha)
        nueva = FilaPlan(fecha=fecha)
        self._filas[fecha] = _renumerar(fecha, [*filas, nueva])
        return self._filas[fecha][-1]

    def duplicar_fila(self, fecha: date, ui_id: str) -> FilaPlan:
        """Insert a copy right after the source row, with its note closed."""
        filas = list(self._dia(fecha))
        i = self._indice(fecha, ui_id)
        filas.insert(i + 1, replace(filas[i], ui_id=nuevo_ui_id(), obs_open=False))
        self._filas[fecha] = _renumerar(fecha, filas)
        return self._filas[fecha][i + 1]

    def quitar_fila(self, fecha: date, ui_id: str) -> None:
        i = self._indice(fecha, ui_id)
        filas = list(self._filas[fecha])
        del filas[i]
        self._filas[fecha] = _renumerar(fecha, filas)

    def actualizar_fila(self, fecha: date, ui_id: str, cambios: Mapping[str, Any]) -> FilaPlan:
        """Merge *cambios* (``FilaPlan`` field names) into the row and renumber."""
        return self.transformar_fila(fecha, ui_id, lambda f: replace(f, **cambios))

    def transformar_fila(
        self, fecha: date, ui_id: str, funcion: Callable[[FilaPlan], FilaPlan]
    ) -> FilaPlan:
        i = self._indice(fecha, ui_id)
        filas = list(self._filas[fecha])
        actual = filas[i]
        filas[i] = replace(funcion(actual), ui_id=actual.ui_id)
        self._filas[fecha] = _renumerar(fecha, filas)
        return self._filas[fecha][i]

    def reemplazar_dia(self, fecha: date, filas: Iterable[FilaPlan]) -> list[FilaPlan]:
        self._dia(fecha)
        self._filas[fecha] = _renumerar(fecha, filas)
        return list(self._filas[fecha])

    # ------------------------------------------------------------------
    # Whole-store changes
    # ------------------------------------------------------------------

    def cambiar_periodo(self, anio: int, mes: int) -> None:
        """Rebuild the day keys for a new month.

        Rows of days outside the new month are dropped; pending loads are
        invalidated.
        """
        dias = tuple(generar_dias_del_mes(anio, mes))
        self._filas = {d: self._filas.get(d, []) for d in dias}
        self._anio, self._mes, self._dias = anio, mes, dias
        self.invalidar_cargas()

    def resetear_valores(self) -> None:
        """Clear location, labor and values of every row (department change)."""
        for d in self._dias:
            self._filas[d] = [resetear_fila(f) for f in self._filas[d]]
        self.invalidar_cargas()

    def vaciar(self) -> None:
        self._filas = {d: [] for d in self._dias}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def emitir_token(self) -> int:
        self._token += 1
        return self._token

    def invalidar_cargas(self) -> None:
        self._token += 1

    def token_vigente(self, token: int) -> bool:
        return token == self._token

    def aplicar_carga(
        self,
        token: int,
        filas: Iterable[FilaPersistida],
        catalogo: CatalogoIndex | None = None,
    ) -> bool:
        """Replace the whole store with persisted rows, if *token* is still current.

        Rows are grouped by date in the order given (the store query sorts
        by date then stored line) and each day is renumbered 1..N. Rows
        dated outside the month are ignored. Loaded rows start in
        ``MANUAL`` mode with their stored effort.

        Returns:
            ``True`` if the load was applied, ``False`` if it was stale.
        """
        if not self.token_vigente(token):
            logger.warning("aplicar_carga: discarding stale load token=%d current=%d", token, self._token)
            return False

        nuevas: dict[date, list[FilaPlan]] = {d: [] for d in self._dias}
        for row in filas:
            if row.fecha not in nuevas:
                continue
            labor = catalogo.labor(row.codigo_labor) if catalogo is not None else None
            nuevas[row.fecha].append(
                FilaPlan(
                    fecha=row.fecha,
                    linea=row.linea,
                    lote_id=row.lote_id or "",
                    red_id=row.red_id or "",
                    sector_id=row.sector_id or "",
                    subgrupo_labor=labor.subgrupo.strip() if labor else "",
                    codigo_labor=row.codigo_labor,
                    ratio=numero_a_texto(row.ratio),
                    ha_prog=numero_a_texto(row.ha_prog),
                    jornales=JornalesManual(numero_a_texto(row.jornales_prog)),
                    obs=row.obs or "",
                )
            )
        self._filas = {d: _renumerar(d, v) for d, v in nuevas.items()}
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _dia(self, fecha: date) -> list[FilaPlan]:
        try:
            return self._filas[fecha]
        except KeyError:
            raise ValueError(
                f"La fecha {fecha.isoformat()} no pertenece al periodo {self._mes:02d}/{self._anio}."
            ) from None

    def _indice(self, fecha: date, ui_id: str) -> int:
        for i, fila in enumerate(self._dia(fecha)):
            if fila.ui_id == ui_id:
                return i
        raise FilaNoEncontradaError(f"No existe la fila {ui_id} en la fecha {fecha.isoformat()}.")
