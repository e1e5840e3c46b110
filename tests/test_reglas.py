"""
tests/test_reglas.py — Effort derivation and single-field triggers.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.grid.modelos import FilaPlan, JornalesAuto, JornalesManual, RefLabor
from app.grid.reglas import (
    a_numero,
    aplicar_cambios,
    aplicar_ha,
    aplicar_jornales,
    aplicar_labor,
    aplicar_lote,
    aplicar_modo,
    aplicar_red,
    aplicar_sector,
    aplicar_subgrupo,
    derivar_jornales,
    es_fila_vacia,
    es_fila_valida,
    numero_a_texto,
    resetear_fila,
    texto_jornales,
    valor_jornales,
)

DIA = date(2025, 3, 1)
FOLIAR = RefLabor(codigo=1001, nombre="Aplicación foliar", grupo="SANIDAD", subgrupo="FUMIGACION", ratio_default=1.5)


@pytest.mark.parametrize(
    "valor, esperado",
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        (" 2.5 ", 2.5),
        (Decimal("1.25"), 1.25),
        (3, 3.0),
    ],
)
def test_a_numero_coerces_anything_to_a_finite_number(valor, esperado):
    assert a_numero(valor) == esperado


def test_numero_a_texto_drops_integer_fraction():
    assert numero_a_texto(3.0) == "3"
    assert numero_a_texto(2.5) == "2.5"
    assert numero_a_texto("x") == "0"


def test_derivar_jornales_rounds_to_two_decimals():
    assert derivar_jornales("2", "1.5") == 3.0
    assert derivar_jornales(1.333, 3) == 4.0
    assert derivar_jornales("0.7", "0.3") == 0.21
    assert derivar_jornales("abc", "1.5") == 0.0


@pytest.mark.parametrize(
    "ha, ratio, esperado",
    [
        ("2.5", "0.25", 0.63),
        ("0.5", "0.25", 0.13),
        ("1.5", "0.25", 0.38),
        ("3.5", "0.25", 0.88),
        ("-2.5", "0.25", -0.63),
    ],
)
def test_derivar_jornales_rounds_half_way_values_up(ha, ratio, esperado):
    assert derivar_jornales(ha, ratio) == esperado


def test_auto_row_rounds_half_way_effort_up():
    fila = FilaPlan(fecha=DIA, ha_prog="0.5", ratio="0.25", jornales=JornalesAuto())
    assert valor_jornales(fila) == 0.13
    assert texto_jornales(fila) == "0.13"


def test_auto_row_always_reports_derived_value():
    fila = FilaPlan(fecha=DIA, ha_prog="2", ratio="1.5", jornales=JornalesAuto())
    assert valor_jornales(fila) == 3.0
    assert texto_jornales(fila) == "3"

    fila = aplicar_ha(fila, "4")
    assert valor_jornales(fila) == 6.0


def test_switching_to_manual_freezes_current_value():
    fila = FilaPlan(fecha=DIA, ha_prog="2", ratio="1.5", jornales=JornalesAuto())
    fila = aplicar_modo(fila, "MANUAL")

    assert fila.jornales == JornalesManual("3")
    fila = aplicar_ha(fila, "10")
    assert valor_jornales(fila) == 3.0


def test_switching_back_to_auto_rederives():
    fila = FilaPlan(fecha=DIA, ha_prog="2", ratio="1.5", jornales=JornalesManual("9"))
    fila = aplicar_modo(fila, "auto")
    assert fila.modo_jornales == "AUTO"
    assert valor_jornales(fila) == 3.0


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        aplicar_modo(FilaPlan(fecha=DIA), "SEMI")


def test_manual_effort_cannot_be_typed_on_auto_row():
    with pytest.raises(ValueError):
        aplicar_jornales(FilaPlan(fecha=DIA, jornales=JornalesAuto()), "5")

    fila = aplicar_jornales(FilaPlan(fecha=DIA), "5,5")
    assert fila.jornales.texto == "5,5"
    assert valor_jornales(fila) == 0.0


def test_labor_change_seeds_subgroup_and_ratio_and_rederives():
    fila = FilaPlan(fecha=DIA, ha_prog="2", jornales=JornalesAuto())
    fila = aplicar_labor(fila, FOLIAR)

    assert fila.codigo_labor == 1001
    assert fila.subgrupo_labor == "FUMIGACION"
    assert fila.ratio == "1.5"
    assert valor_jornales(fila) == 3.0

    fila = aplicar_labor(fila, None)
    assert fila.codigo_labor is None
    assert fila.ratio == "0"


def test_subgroup_change_clears_labor():
    fila = aplicar_labor(FilaPlan(fecha=DIA), FOLIAR)
    fila = aplicar_subgrupo(fila, "EVALUACION")
    assert fila.codigo_labor is None
    assert fila.subgrupo_labor == "EVALUACION"


def test_sector_area_overwrites_ha_only_when_chosen():
    fila = FilaPlan(fecha=DIA, ha_prog="7")
    assert aplicar_sector(fila, "", 3.5).ha_prog == "7"
    assert aplicar_sector(fila, "S02", 3.5).ha_prog == "3.5"


def test_location_cascade():
    fila = FilaPlan(fecha=DIA, lote_id="L01", red_id="R01", sector_id="S01")

    assert aplicar_lote(fila, "L01") is fila
    cambiada = aplicar_lote(fila, "L02")
    assert (cambiada.red_id, cambiada.sector_id) == ("", "")

    cambiada = aplicar_red(fila, "R02")
    assert (cambiada.lote_id, cambiada.red_id, cambiada.sector_id) == ("L01", "R02", "")


def test_empty_and_valid_rows():
    vacia = FilaPlan(fecha=DIA, obs="   ")
    assert es_fila_vacia(vacia)
    assert not es_fila_vacia(FilaPlan(fecha=DIA, obs="revisar"))
    assert not es_fila_vacia(FilaPlan(fecha=DIA, ha_prog="1"))

    con_labor = FilaPlan(fecha=DIA, codigo_labor=1001)
    assert not es_fila_valida(con_labor)
    assert es_fila_valida(aplicar_jornales(con_labor, "2"))
    assert not es_fila_valida(FilaPlan(fecha=DIA, jornales=JornalesManual("2")))


def test_resetear_fila_keeps_identity_and_position():
    fila = FilaPlan(fecha=DIA, linea=3, lote_id="L01", codigo_labor=1001, ha_prog="2",
                    jornales=JornalesAuto(), obs="x", obs_open=True)
    limpia = resetear_fila(fila)

    assert (limpia.ui_id, limpia.fecha, limpia.linea) == (fila.ui_id, DIA, 3)
    assert es_fila_vacia(limpia)
    assert limpia.jornales == JornalesManual("0")
    assert not limpia.obs_open


# ---------------------------------------------------------------------------
# Change sets against a catalogue
# ---------------------------------------------------------------------------


def test_aplicar_cambios_full_entry(catalogo):
    fila = aplicar_cambios(
        FilaPlan(fecha=DIA),
        {"lote_id": "L01", "red_id": "R01", "sector_id": "S01", "codigo_labor": 1001, "modo_jornales": "AUTO"},
        catalogo,
    )

    assert fila.ha_prog == "2"
    assert fila.ratio == "1.5"
    assert valor_jornales(fila) == 3.0


def test_aplicar_cambios_explicit_ha_wins_over_sector_area(catalogo):
    fila = aplicar_cambios(
        FilaPlan(fecha=DIA),
        {"lote_id": "L01", "red_id": "R01", "sector_id": "S02", "ha_prog": "1.25"},
        catalogo,
    )
    assert fila.ha_prog == "1.25"


def test_aplicar_cambios_rejects_location_outside_hierarchy(catalogo):
    with pytest.raises(ValueError):
        aplicar_cambios(FilaPlan(fecha=DIA), {"lote_id": "L02", "red_id": "R02"}, catalogo)
    with pytest.raises(ValueError):
        aplicar_cambios(FilaPlan(fecha=DIA), {"red_id": "R01"}, catalogo)
    with pytest.raises(ValueError):
        aplicar_cambios(FilaPlan(fecha=DIA, lote_id="L01", red_id="R02"), {"sector_id": "S01"}, catalogo)


def test_aplicar_cambios_rejects_labor_outside_catalogue(catalogo):
    with pytest.raises(ValueError):
        aplicar_cambios(FilaPlan(fecha=DIA), {"codigo_labor": 2001}, catalogo)


def test_note_edit_does_not_revalidate_stale_location(catalogo):
    fila = FilaPlan(fecha=DIA, lote_id="L99", red_id="RX")
    fila = aplicar_cambios(fila, {"obs": "lote retirado", "obs_open": True}, catalogo)
    assert fila.obs == "lote retirado"
    assert fila.obs_open
