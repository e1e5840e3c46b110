"""
Entry computation rules for the plan grid.

Every function here is pure: it receives a ``FilaPlan`` and returns a new
one, never mutating its input and never touching the row store.

Rules
-----
- ``derivar_jornales(ha, ratio)`` is ha × ratio rounded to two decimals,
  half-way values away from zero.
- In ``AUTO`` mode the effort is always the derived value, so any change
  of area, ratio or labor (which seeds the ratio) is reflected at once.
- In ``MANUAL`` mode the effort is the text the user typed and nothing
  recomputes it.
- Switching to ``MANUAL`` freezes the current effort as the manual text;
  switching back to ``AUTO`` derives it again from area × ratio.
- Any value that does not parse as a finite number counts as zero.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from app.grid.modelos import FilaPlan, JornalesAuto, JornalesManual, RefLabor
from app.utils.constants import DECIMALES_JORNALES, MODO_AUTO, MODO_MANUAL

if TYPE_CHECKING:
    from app.grid.catalogo import CatalogoIndex

_CENTESIMOS = Decimal(10) ** -DECIMALES_JORNALES


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------


def a_numero(valor: Any) -> float:
    """Coerce *valor* to a finite float, or 0.0 when that is not possible.

    Accepts ``None``, numbers, ``Decimal`` and text (surrounding blanks are
    ignored). NaN and infinities also collapse to 0.0.
    """
    if valor is None:
        return 0.0
    try:
        if isinstance(valor, (int, float, Decimal)):
            numero = float(valor)
        else:
            texto = str(valor).strip()
            if not texto:
                return 0.0
            numero = float(texto)
    except (TypeError, ValueError, OverflowError, InvalidOperation):
        return 0.0
    return numero if math.isfinite(numero) else 0.0


def numero_a_texto(valor: Any) -> str:
    """Render a number the way the grid displays it: ``3.0`` -> ``"3"``."""
    numero = a_numero(valor)
    if numero.is_integer():
        return str(int(numero))
    return repr(numero)


def _texto_crudo(valor: Any) -> str:
    if valor is None:
        return ""
    if isinstance(valor, str):
        return valor
    return numero_a_texto(valor)


def derivar_jornales(ha: Any, ratio: Any) -> float:
    # Quantizes the exact binary product, so 0.625 becomes 0.63.
    producto = Decimal(a_numero(ha) * a_numero(ratio))
    return float(producto.quantize(_CENTESIMOS, rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Effort accessors
# ---------------------------------------------------------------------------


def valor_jornales(fila: FilaPlan) -> float:
    """Numeric effort of *fila* according to its mode."""
    if isinstance(fila.jornales, JornalesAuto):
        return derivar_jornales(fila.ha_prog, fila.ratio)
    return a_numero(fila.jornales.texto)


def texto_jornales(fila: FilaPlan) -> str:
    if isinstance(fila.jornales, JornalesAuto):
        return numero_a_texto(derivar_jornales(fila.ha_prog, fila.ratio))
    return fila.jornales.texto


# ---------------------------------------------------------------------------
# Emptiness and validity
# ---------------------------------------------------------------------------


def es_fila_vacia(fila: FilaPlan) -> bool:
    """True when the row carries nothing worth persisting or validating."""
    return (
        not fila.lote_id
        and not fila.red_id
        and not fila.sector_id
        and not fila.codigo_labor
        and a_numero(fila.ha_prog) == 0
        and valor_jornales(fila) == 0
        and not fila.obs.strip()
    )


def es_fila_valida(fila: FilaPlan) -> bool:
    """A non-empty row may be persisted only with a labor and positive effort."""
    return bool(fila.codigo_labor) and valor_jornales(fila) > 0


def resetear_fila(fila: FilaPlan) -> FilaPlan:
    """Clear location, labor and values, keeping identity, date and line."""
    return replace(
        fila,
        lote_id="",
        red_id="",
        sector_id="",
        subgrupo_labor="",
        codigo_labor=None,
        ratio="0",
        ha_prog="0",
        jornales=JornalesManual("0"),
        obs="",
        obs_open=False,
    )


# ---------------------------------------------------------------------------
# Single-field triggers
# ---------------------------------------------------------------------------


def aplicar_lote(fila: FilaPlan, lote_id: str) -> FilaPlan:
    lote_id = (lote_id or "").strip()
    if lote_id == fila.lote_id:
        return fila
    return replace(fila, lote_id=lote_id, red_id="", sector_id="")


def aplicar_red(fila: FilaPlan, red_id: str) -> FilaPlan:
    red_id = (red_id or "").strip()
    if red_id == fila.red_id:
        return fila
    return replace(fila, red_id=red_id, sector_id="")


def aplicar_sector(fila: FilaPlan, sector_id: str, ha_sector: Any) -> FilaPlan:
    """Select a sector; its stored area overwrites ``ha_prog`` only when one is chosen."""
    sector_id = (sector_id or "").strip()
    if not sector_id:
        return replace(fila, sector_id="")
    return replace(fila, sector_id=sector_id, ha_prog=numero_a_texto(ha_sector))


def aplicar_subgrupo(fila: FilaPlan, subgrupo: str) -> FilaPlan:
    return replace(fila, subgrupo_labor=(subgrupo or "").strip(), codigo_labor=None)


def aplicar_labor(fila: FilaPlan, labor: RefLabor | None) -> FilaPlan:
    """Select a labor: its subgroup and default ratio replace the row's."""
    if labor is None:
        return replace(fila, codigo_labor=None, subgrupo_labor="", ratio="0")
    return replace(
        fila,
        codigo_labor=labor.codigo,
        subgrupo_labor=labor.subgrupo.strip(),
        ratio=numero_a_texto(labor.ratio_default),
    )


def aplicar_ha(fila: FilaPlan, valor: Any) -> FilaPlan:
    return replace(fila, ha_prog=_texto_crudo(valor))


def aplicar_ratio(fila: FilaPlan, valor: Any) -> FilaPlan:
    return replace(fila, ratio=_texto_crudo(valor))


def aplicar_modo(fila: FilaPlan, modo: str) -> FilaPlan:
    modo = (modo or "").strip().upper()
    if modo == MODO_AUTO:
        return replace(fila, jornales=JornalesAuto())
    if modo == MODO_MANUAL:
        if isinstance(fila.jornales, JornalesManual):
            return fila
        return replace(fila, jornales=JornalesManual(texto_jornales(fila)))
    raise ValueError(f"Modo de jornales desconocido: '{modo}'.")


def aplicar_jornales(fila: FilaPlan, valor: Any) -> FilaPlan:
    if isinstance(fila.jornales, JornalesAuto):
        raise ValueError("Los jornales solo se pueden editar en modo MANUAL.")
    return replace(fila, jornales=JornalesManual(_texto_crudo(valor)))


# ---------------------------------------------------------------------------
# Change sets
# ---------------------------------------------------------------------------


def aplicar_cambios(fila: FilaPlan, cambios: Mapping[str, Any], catalogo: CatalogoIndex) -> FilaPlan:
    """Apply a partial change set with every trigger it implies.

    Keys are processed in a fixed order (location, labor, values, mode,
    manual effort, note) so that, for instance, an explicit ``ha_prog`` in
    the same change set wins over the area seeded by ``sector_id``.

    Args:
        fila: Row before the change.
        cambios: Subset of ``lote_id``, ``red_id``, ``sector_id``,
            ``subgrupo_labor``, ``codigo_labor``, ``ha_prog``, ``ratio``,
            ``modo_jornales``, ``jornales_prog``, ``obs`` and ``obs_open``.
        catalogo: Catalogue of the department owning the plan.

    Returns:
        The updated row.

    Raises:
        ValueError: If the location breaks the Lote → Red → Sector
            hierarchy, the labor is not in the catalogue, or manual effort
            is sent for an ``AUTO`` row.
    """
    nueva = fila
    if "lote_id" in cambios:
        nueva = aplicar_lote(nueva, cambios["lote_id"])
    if "red_id" in cambios:
        nueva = aplicar_red(nueva, cambios["red_id"])
    if "sector_id" in cambios:
        sector_id = (cambios["sector_id"] or "").strip()
        nueva = aplicar_sector(
            nueva, sector_id, catalogo.ha_sector(nueva.lote_id, nueva.red_id, sector_id)
        )
    if cambios.keys() & {"lote_id", "red_id", "sector_id"}:
        catalogo.validar_ubicacion(nueva.lote_id, nueva.red_id, nueva.sector_id)

    if "subgrupo_labor" in cambios:
        nueva = aplicar_subgrupo(nueva, cambios["subgrupo_labor"])
    if "codigo_labor" in cambios:
        codigo = cambios["codigo_labor"]
        labor = None
        if codigo:
            labor = catalogo.labor(int(codigo))
            if labor is None:
                raise ValueError(f"La labor {codigo} no pertenece al catálogo del departamento.")
        nueva = aplicar_labor(nueva, labor)

    if "ha_prog" in cambios:
        nueva = aplicar_ha(nueva, cambios["ha_prog"])
    if "ratio" in cambios:
        nueva = aplicar_ratio(nueva, cambios["ratio"])
    if "modo_jornales" in cambios:
        nueva = aplicar_modo(nueva, cambios["modo_jornales"])
    if "jornales_prog" in cambios:
        nueva = aplicar_jornales(nueva, cambios["jornales_prog"])

    if "obs" in cambios:
        nueva = replace(nueva, obs=cambios["obs"] or "")
    if "obs_open" in cambios:
        nueva = replace(nueva, obs_open=bool(cambios["obs_open"]))
    return nueva
