"""
Export service layer.

Turns the flat plan export and the detail of a version into Excel
workbooks through ``ExcelExporter``.

Design notes
------------
- Column order of the plan export: period and department first, then the
  row (date, line, location, labor) and finally the values and mode.
- Both workbooks carry a second sheet with per-day totals.
- Only non-empty rows are exported; the rows come already ordered by
  date and line.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Any

from app.exporters.excel_exporter import ExcelExporter
from app.schemas.plan import FilaExportacion
from app.schemas.version import DetalleVersionResponse
from app.utils.constants import MES_LABELS

logger = logging.getLogger(__name__)

COLUMNAS_PLAN: list[str] = [
    "anio", "mes", "depto_id", "departamento", "cultivo",
    "fecha", "linea", "lote_id", "red_id", "sector_id",
    "codigo_labor", "labor", "subgrupo", "grupo",
    "ha_prog", "ratio", "jornales_prog", "modo", "obs",
]
_NUMERICAS_PLAN = {COLUMNAS_PLAN.index(c) for c in ("ha_prog", "ratio", "jornales_prog")}

COLUMNAS_VERSION: list[str] = [
    "version_id", "fecha", "linea", "lote_id", "red_id", "sector_id",
    "codigo_labor", "labor", "grupo", "subgrupo",
    "ha_prog", "ratio", "jornales_prog", "obs",
]
_NUMERICAS_VERSION = {COLUMNAS_VERSION.index(c) for c in ("ha_prog", "ratio", "jornales_prog")}

_COLUMNAS_RESUMEN = ["Fecha", "Filas", "Hectáreas", "Jornales"]


def _periodo(anio: int, mes: int) -> str:
    return f"{MES_LABELS[mes]} {anio}"


def _resumen_por_fecha(filas: list[tuple[date, float, float]]) -> list[list[Any]]:
    acumulado: dict[date, list[float]] = defaultdict(lambda: [0, 0.0, 0.0])
    for fecha, ha, jornales in filas:
        item = acumulado[fecha]
        item[0] += 1
        item[1] += ha
        item[2] += jornales
    return [[f, int(c), h, j] for f, (c, h, j) in sorted(acumulado.items())]


def nombre_archivo(prefijo: str, anio: int, mes: int, sufijo: int | str) -> str:
    """``"plan_2025_03_4.xlsx"``."""
    return f"{prefijo}_{anio}_{mes:02d}_{sufijo}.xlsx"


def excel_plan(
    filas: list[FilaExportacion], anio: int, mes: int, etiqueta_departamento: str
) -> bytes:
    """Workbook with the flat export of an open plan.

    Args:
        filas: Output of ``plan_service.filas_exportacion``.
        anio: Plan year.
        mes: Plan month.
        etiqueta_departamento: ``"name - crop"`` label for the header.

    Returns:
        Raw bytes of the ``.xlsx`` file.
    """
    rows = [[getattr(f, c) for c in COLUMNAS_PLAN] for f in filas]
    exporter = ExcelExporter(
        title=f"Plan mensual de jornales {_periodo(anio, mes)}",
        filters={"Departamento": etiqueta_departamento, "Periodo": f"{mes:02d}/{anio}"},
    )
    exporter.add_header(len(COLUMNAS_PLAN))
    exporter.add_kpi_row({
        "Filas": len(filas),
        "Hectáreas": sum(f.ha_prog for f in filas),
        "Jornales": sum(f.jornales_prog for f in filas),
    })
    exporter.add_data_table(COLUMNAS_PLAN, rows, numeric_cols=_NUMERICAS_PLAN)
    exporter.add_sheet("Resumen por día")
    exporter.add_data_table(
        _COLUMNAS_RESUMEN,
        _resumen_por_fecha([(f.fecha, f.ha_prog, f.jornales_prog) for f in filas]),
        numeric_cols={2, 3},
    )
    file_bytes = exporter.finalize()

    logger.info("excel_plan: %d-%02d rows=%d bytes=%d", anio, mes, len(rows), len(file_bytes))
    return file_bytes


def excel_version(detalle: DetalleVersionResponse, etiqueta_departamento: str) -> bytes:
    """Workbook with the rows of one plan version."""
    version = detalle.version
    rows = [
        [
            version.id, f.fecha, f.linea, f.lote_id, f.red_id, f.sector_id,
            f.codigo_labor, f.labor, f.grupo, f.subgrupo,
            f.ha_prog, f.ratio, f.jornales_prog, f.obs,
        ]
        for f in detalle.filas
    ]
    exporter = ExcelExporter(
        title=f"Versión {version.secuencia} del plan {_periodo(version.anio, version.mes)}",
        filters={
            "Departamento": etiqueta_departamento,
            "Creada": version.created_at.strftime("%d/%m/%Y %H:%M"),
            "Creada por": version.created_by or "",
            "Comentario": version.comentario or "",
        },
        sheet_name="Versión",
    )
    exporter.add_header(len(COLUMNAS_VERSION))
    exporter.add_kpi_row({
        "Filas": len(rows),
        "Hectáreas": detalle.ha_total,
        "Jornales": detalle.jornales_total,
    })
    exporter.add_data_table(COLUMNAS_VERSION, rows, numeric_cols=_NUMERICAS_VERSION)
    exporter.add_sheet("Resumen por día")
    exporter.add_data_table(
        _COLUMNAS_RESUMEN,
        [[t.fecha, t.cantidad, t.ha, t.jornales] for t in detalle.por_fecha],
        numeric_cols={2, 3},
    )
    file_bytes = exporter.finalize()

    logger.info("excel_version: version_id=%d rows=%d bytes=%d", version.id, len(rows), len(file_bytes))
    return file_bytes
