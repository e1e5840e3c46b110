"""
Excel export helper wrapping xlsxwriter.

Provides ``ExcelExporter`` — a stateful builder that constructs a styled
plan workbook in memory and returns its bytes for streaming via FastAPI's
``StreamingResponse``.

Usage example::

    exporter = ExcelExporter(title="Plan Mar 2025", filters={"Departamento": "RIEGO - PALTO"})
    exporter.add_header()
    exporter.add_kpi_row({"Hectáreas": 12.5, "Jornales": 30.0})
    exporter.add_data_table(headers, rows, numeric_cols={14, 15, 16})
    exporter.add_sheet("Resumen por día")
    exporter.add_data_table(["Fecha", "Filas", "Ha", "Jornales"], resumen, numeric_cols={2, 3})
    file_bytes = exporter.finalize()

Design notes
------------
- Uses ``xlsxwriter`` in in-memory mode (``BytesIO``).
- Column widths are auto-sized from the longest value of each column,
  capped at 60 characters.
- ``date`` cells are written as real Excel dates (``dd/mm/yyyy``), so the
  sheet sorts and filters by date.
- Hectares, ratios and jornales use ``#,##0.00``.
"""

from __future__ import annotations

import io
from datetime import date, datetime, timezone
from typing import Any, Sequence

import xlsxwriter
from xlsxwriter.workbook import Workbook
from xlsxwriter.worksheet import Worksheet

_COLOR_PRIMARY = "#15803d"   # field green
_COLOR_WHITE = "#FFFFFF"
_COLOR_LIGHT_GREY = "#F3F4F6"
_COLOR_SUBHEADER_BG = "#14532D"

_MAX_COL_WIDTH = 60
_MIN_COL_WIDTH = 8
_HEADER_MIN_COLS = 6


class ExcelExporter:
    """Stateful workbook builder for plan exports.

    Args:
        title: Title written in the header block, e.g. ``"Plan Mar 2025"``.
        filters: Labels describing the exported scope, shown under the title.
        sheet_name: Name of the first worksheet tab (default: ``"Plan"``).
    """

    def __init__(
        self,
        title: str,
        filters: dict[str, str] | None = None,
        sheet_name: str = "Plan",
    ) -> None:
        self._title = title
        self._filters = filters or {}

        self._buffer = io.BytesIO()
        self._workbook: Workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet: Worksheet = self._workbook.add_worksheet(sheet_name)
        self._current_row: int = 0
        self._formats: dict[str, Any] = self._build_formats()

    # -----------------------------------------------------------------------
    # Format factory
    # -----------------------------------------------------------------------

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        base = {"font_size": 9, "font_color": "#111827", "valign": "vcenter", "border": 1, "border_color": "#E5E7EB"}
        formats: dict[str, Any] = {}

        formats["header_main"] = wb.add_format({
            "bold": True,
            "font_size": 16,
            "font_color": _COLOR_WHITE,
            "bg_color": _COLOR_PRIMARY,
            "align": "center",
            "valign": "vcenter",
        })
        formats["header_sub"] = wb.add_format({
            "font_size": 10,
            "font_color": _COLOR_WHITE,
            "bg_color": _COLOR_SUBHEADER_BG,
            "align": "center",
            "valign": "vcenter",
        })
        formats["filter_key"] = wb.add_format({
            "bold": True,
            "font_size": 9,
            "font_color": "#374151",
            "bg_color": "#E5E7EB",
            "align": "right",
        })
        formats["filter_value"] = wb.add_format({"font_size": 9, "bg_color": "#F9FAFB", "align": "left"})
        formats["kpi_label"] = wb.add_format({
            "bold": True,
            "font_size": 10,
            "bg_color": "#F0FDF4",
            "align": "center",
            "border": 1,
            "border_color": "#BBF7D0",
        })
        formats["kpi_value"] = wb.add_format({
            "bold": True,
            "font_size": 12,
            "font_color": _COLOR_PRIMARY,
            "bg_color": "#F0FDF4",
            "align": "center",
            "num_format": "#,##0.00",
            "border": 1,
            "border_color": "#BBF7D0",
        })
        formats["col_header"] = wb.add_format({
            "bold": True,
            "font_size": 10,
            "font_color": _COLOR_WHITE,
            "bg_color": _COLOR_SUBHEADER_BG,
            "align": "center",
            "valign": "vcenter",
            "border": 1,
            "border_color": "#CBD5E1",
            "text_wrap": True,
        })

        for alt, bg in ((False, _COLOR_WHITE), (True, _COLOR_LIGHT_GREY)):
            sufijo = "_alt" if alt else ""
            formats[f"data_plain{sufijo}"] = wb.add_format({**base, "bg_color": bg, "align": "left"})
            formats[f"data_number{sufijo}"] = wb.add_format(
                {**base, "bg_color": bg, "align": "right", "num_format": "#,##0.00"}
            )
            formats[f"data_date{sufijo}"] = wb.add_format(
                {**base, "bg_color": bg, "align": "center", "num_format": "dd/mm/yyyy"}
            )
        return formats

    # -----------------------------------------------------------------------
    # Public builder methods
    # -----------------------------------------------------------------------

    def add_sheet(self, sheet_name: str) -> "ExcelExporter":
        """Start writing on a new worksheet tab."""
        self._worksheet = self._workbook.add_worksheet(sheet_name)
        self._current_row = 0
        return self

    def add_header(self, num_cols: int = _HEADER_MIN_COLS) -> "ExcelExporter":
        """Write the title, generation timestamp and one row per filter label.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        ultima = max(num_cols, _HEADER_MIN_COLS) - 1

        ws.set_row(self._current_row, 32)
        ws.merge_range(self._current_row, 0, self._current_row, ultima, self._title, self._formats["header_main"])
        self._current_row += 1

        gen_ts = datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")
        ws.set_row(self._current_row, 18)
        ws.merge_range(
            self._current_row, 0, self._current_row, ultima, f"Generado: {gen_ts}", self._formats["header_sub"]
        )
        self._current_row += 1

        for key, value in self._filters.items():
            ws.write(self._current_row, 0, key, self._formats["filter_key"])
            ws.merge_range(self._current_row, 1, self._current_row, ultima, value, self._formats["filter_value"])
            self._current_row += 1

        self._current_row += 1
        return self

    def add_kpi_row(self, kpis: dict[str, Any]) -> "ExcelExporter":
        """Write labelled totals, one column per entry.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        for col, (label, value) in enumerate(kpis.items()):
            ws.write(self._current_row, col, label, self._formats["kpi_label"])
            ws.write(self._current_row + 1, col, value, self._formats["kpi_value"])
        ws.set_row(self._current_row + 1, 22)
        self._current_row += 3
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        numeric_cols: set[int] | None = None,
    ) -> "ExcelExporter":
        """Write a styled table with alternating row shading.

        Args:
            headers: Column header strings.
            rows: Data rows, each as long as ``headers``.
            numeric_cols: Zero-based indices of numeric columns. ``date``
                values are detected per cell.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        numeric_cols = numeric_cols or set()
        col_widths: list[int] = [len(str(h)) for h in headers]

        ws.set_row(self._current_row, 20)
        for ci, hdr in enumerate(headers):
            ws.write(self._current_row, ci, hdr, self._formats["col_header"])
        self._current_row += 1

        for ri, data_row in enumerate(rows):
            sufijo = "_alt" if ri % 2 == 1 else ""
            for ci, cell_val in enumerate(data_row):
                if isinstance(cell_val, date):
                    ws.write_datetime(
                        self._current_row, ci,
                        datetime(cell_val.year, cell_val.month, cell_val.day),
                        self._formats[f"data_date{sufijo}"],
                    )
                    texto = "dd/mm/yyyy"
                elif ci in numeric_cols:
                    ws.write_number(self._current_row, ci, float(cell_val or 0), self._formats[f"data_number{sufijo}"])
                    texto = f"{float(cell_val or 0):,.2f}"
                else:
                    valor = "" if cell_val is None else cell_val
                    ws.write(self._current_row, ci, valor, self._formats[f"data_plain{sufijo}"])
                    texto = str(valor)
                col_widths[ci] = min(_MAX_COL_WIDTH, max(col_widths[ci], len(texto)))
            self._current_row += 1

        for ci, width in enumerate(col_widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))
        ws.freeze_panes(self._current_row - len(rows), 0)
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return its bytes; the exporter is not reusable after this."""
        self._workbook.close()
        self._buffer.seek(0)
        return self._buffer.read()
