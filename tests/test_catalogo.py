"""
tests/test_catalogo.py — Catalogue indexes, display helpers and department access.
"""

from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.grid.catalogo import (
    construir_catalogo,
    etiqueta_departamento,
    formatear_red,
    formatear_sector,
    norm_key,
)
from app.grid.modelos import RefLabor
from app.models import Departamento, Lote
from app.services import catalogo_service


# ---------------------------------------------------------------------------
# Pure indexes
# ---------------------------------------------------------------------------


def test_networks_and_sectors_are_sorted(catalogo):
    assert [r.red_id for r in catalogo.redes_de("L01")] == ["R01", "R02"]
    assert [s.sector_id for s in catalogo.sectores_de("L01", "R01")] == ["S01", "S02"]
    assert catalogo.redes_de("L99") == ()
    assert catalogo.ha_sector("L01", "R01", "S02") == 3.5
    assert catalogo.ha_sector("L01", "R02", "S02") == 0.0


def test_subgroups_and_labor_lookup(catalogo):
    assert catalogo.subgrupos == ("EVALUACION", "FUMIGACION")
    assert [lab.codigo for lab in catalogo.labores_de_subgrupo("FUMIGACION")] == [1001]
    assert len(catalogo.labores_de_subgrupo("")) == 2
    assert catalogo.labor(1003).ratio_default == 0.3
    assert catalogo.labor(None) is None
    assert catalogo.labor(9999) is None


def test_blank_subgroups_are_not_offered():
    cat = construir_catalogo(
        (RefLabor(codigo=1, nombre="a", subgrupo="  "), RefLabor(codigo=2, nombre="b", subgrupo=" X ")),
        (), (), (),
    )
    assert cat.subgrupos == ("X",)


def test_same_inputs_return_same_index(catalogo):
    otra = construir_catalogo(catalogo.labores, catalogo.lotes, (), ())
    again = construir_catalogo(catalogo.labores, catalogo.lotes, (), ())
    assert otra is again
    assert otra is not catalogo


def test_location_hierarchy(catalogo):
    catalogo.validar_ubicacion("", "", "")
    catalogo.validar_ubicacion("L01", "R02", "")
    catalogo.validar_ubicacion("L01", "R01", "S02")
    with pytest.raises(ValueError):
        catalogo.validar_ubicacion("L02", "R02", "")
    with pytest.raises(ValueError):
        catalogo.validar_ubicacion("L01", "", "S01")
    with pytest.raises(ValueError):
        catalogo.validar_ubicacion("L02", "R01", "S02")


@pytest.mark.parametrize(
    "raw, esperado",
    [
        ("R01_L01_PAL:R01", "R01_L01"),
        ("R02_L05_ARA", "R02_L05"),
        ("R01_L07_Palto", "R01_L07"),
        ("", ""),
    ],
)
def test_formatear_red(raw, esperado):
    assert formatear_red(raw) == esperado


@pytest.mark.parametrize(
    "raw, esperado",
    [("L05_ARA_R01_S02", "S2"), ("L01-S10", "S10"), ("SECTOR", "SECTOR"), (None, "")],
)
def test_formatear_sector(raw, esperado):
    assert formatear_sector(raw) == esperado


def test_department_label():
    assert etiqueta_departamento("RIEGO", "PALTO") == "RIEGO - PALTO"
    assert etiqueta_departamento("PALTO SANIDAD", "palto") == "PALTO SANIDAD"
    assert etiqueta_departamento(" RIEGO ", None) == "RIEGO"
    assert norm_key(" sanidad ") == "SANIDAD"


# ---------------------------------------------------------------------------
# Database-backed catalogue
# ---------------------------------------------------------------------------


def test_admin_sees_every_active_department_once(db, datos):
    opciones = catalogo_service.listar_departamentos(db, datos.admin)

    assert [o.departamento for o in opciones] == ["RIEGO", "SANIDAD"]
    sanidad = opciones[1]
    assert sanidad.id == datos.sanidad.id
    assert sanidad.etiqueta == "SANIDAD - PALTO"


def test_jefe_sees_only_granted_departments(db, datos):
    opciones = catalogo_service.listar_departamentos(db, datos.jefe)
    assert [o.id for o in opciones] == [datos.sanidad.id]


def test_department_access_checks(db, datos):
    assert catalogo_service.obtener_departamento(db, datos.jefe, datos.sanidad.id).id == datos.sanidad.id

    with pytest.raises(HTTPException) as exc:
        catalogo_service.obtener_departamento(db, datos.jefe, datos.riego.id)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        catalogo_service.obtener_departamento(db, datos.admin, datos.inactivo.id)
    assert exc.value.status_code == 404


def test_cargar_catalogo_filters_by_department_crop_and_active(db, datos):
    cat = catalogo_service.cargar_catalogo(db, datos.sanidad)

    assert [lab.codigo for lab in cat.labores] == [1001, 1003]
    assert [lote.lote_id for lote in cat.lotes] == ["L01"]
    assert [r.red_id for r in cat.redes_de("L01")] == ["R01", "R02"]
    assert cat.redes_de("L05") == ()
    assert cat.ha_sector("L01", "R01", "S02") == 3.5
    assert cat.labor(1001).ratio_default == 1.5

    assert catalogo_service.cargar_catalogo(db, datos.sanidad) is cat


def test_cargar_catalogo_scopes_fields_by_estate(db, datos):
    db.add_all([
        Lote(lote_id="L03", cultivo="PALTO", fundo="EL ALAMO", ha_total=Decimal("9"), activo=True),
        Departamento(departamento="PODA", jefe="Rosa", cultivo="PALTO", fundo=None, activo=True),
    ])
    db.commit()
    poda = db.query(Departamento).filter(Departamento.departamento == "PODA").one()

    assert [lote.lote_id for lote in catalogo_service.cargar_catalogo(db, datos.sanidad).lotes] == ["L01"]
    assert [lote.lote_id for lote in catalogo_service.cargar_catalogo(db, poda).lotes] == ["L01", "L03"]
