"""
Monthly plan service layer.

All database access for the plan header and its detail rows lives here,
together with the read models computed from an in-memory ``PlanGrid``
(totals, per-day summary, flat export).

Design notes
------------
- ``asegurar_plan`` finds the single plan of (anio, mes, depto_id) or
  creates it in ``BORRADOR`` with the department's jefe. A concurrent
  creation that trips the unique constraint is resolved by re-reading.
- ``guardar_plan`` is the persistence gate: empty rows are dropped, any
  invalid non-empty row rejects the whole save before the database is
  touched, and a plan with no non-empty rows is not written at all.
- The detail set is replaced wholesale (delete, then insert). With
  ``GUARDADO_TRANSACCIONAL`` both statements share one transaction, so a
  failed insert rolls the delete back. Without it the delete is committed
  first and a failed insert leaves the plan empty on the server; that
  case is reported with ``riesgo_perdida=True``.
- Effort is persisted as its numeric value: the derived value for
  ``AUTO`` rows, the coerced manual text otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.grid.catalogo import CatalogoIndex
from app.grid.errores import CargaError, PersistenciaError, ValidacionError
from app.grid.filas import PlanGrid
from app.grid.modelos import FilaPersistida, FilaPlan
from app.grid.reglas import a_numero, es_fila_vacia, es_fila_valida, valor_jornales
from app.models.departamento import Departamento
from app.models.plan import Plan, PlanDetalle
from app.schemas.plan import (
    FilaExportacion,
    ResumenDia,
    ResumenLaborItem,
    TotalDia,
    TotalesResponse,
)
from app.utils.constants import ESTADO_PLAN_BORRADOR

logger = logging.getLogger(__name__)

REGLA_LABOR_Y_JORNALES = "LABOR_Y_JORNALES"


# ---------------------------------------------------------------------------
# Plan header
# ---------------------------------------------------------------------------


def _buscar_plan(db: Session, anio: int, mes: int, depto_id: int) -> Plan | None:
    return (
        db.query(Plan)
        .filter(Plan.anio == anio, Plan.mes == mes, Plan.depto_id == depto_id)
        .first()
    )


def asegurar_plan(db: Session, departamento: Departamento, anio: int, mes: int) -> Plan:
    """Return the plan of (anio, mes, departamento), creating it if absent.

    Args:
        db: Active SQLAlchemy session.
        departamento: Department being planned; its ``jefe`` is copied onto
            a newly created plan.
        anio: Calendar year.
        mes: Month number (1–12).

    Returns:
        The existing or newly created ``Plan``.

    Raises:
        CargaError: If the plan can be neither read nor created.
    """
    try:
        plan = _buscar_plan(db, anio, mes, departamento.id)
        if plan is not None:
            logger.debug("asegurar_plan: found plan id=%d for %d-%02d depto=%d", plan.id, anio, mes, departamento.id)
            return plan

        plan = Plan(
            anio=anio,
            mes=mes,
            depto_id=departamento.id,
            jefe=departamento.jefe,
            estado=ESTADO_PLAN_BORRADOR,
        )
        db.add(plan)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            plan = _buscar_plan(db, anio, mes, departamento.id)
            if plan is None:
                raise
            return plan
        db.refresh(plan)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("asegurar_plan: failed for %d-%02d depto=%d", anio, mes, departamento.id)
        raise CargaError("No se pudo obtener el plan del periodo.") from exc

    logger.info("asegurar_plan: created plan id=%d for %d-%02d depto=%d", plan.id, anio, mes, departamento.id)
    return plan


def obtener_plan(db: Session, plan_id: int) -> Plan | None:
    return db.query(Plan).filter(Plan.id == plan_id).first()


# ---------------------------------------------------------------------------
# Detail rows
# ---------------------------------------------------------------------------


def leer_detalle(db: Session, plan_id: int) -> list[FilaPersistida]:
    """Persisted detail rows of a plan, ordered by date then line.

    Raises:
        CargaError: If the query fails.
    """
    try:
        rows = (
            db.query(PlanDetalle)
            .filter(PlanDetalle.plan_id == plan_id)
            .order_by(PlanDetalle.fecha, PlanDetalle.linea, PlanDetalle.id)
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("leer_detalle: query failed for plan_id=%d", plan_id)
        raise CargaError("No se pudo cargar el detalle del plan.") from exc

    logger.debug("leer_detalle: plan_id=%d rows=%d", plan_id, len(rows))
    return [
        FilaPersistida(
            fecha=r.fecha,
            linea=r.linea,
            lote_id=r.lote_id,
            red_id=r.red_id,
            sector_id=r.sector_id,
            codigo_labor=r.codigo_labor,
            ratio=r.ratio,
            ha_prog=r.ha_prog,
            jornales_prog=r.jornales_prog,
            obs=r.obs,
        )
        for r in rows
    ]


def validar_filas(filas: Iterable[FilaPlan]) -> list[FilaPlan]:
    """Drop empty rows and check the rest.

    Returns:
        The non-empty rows, in input order.

    Raises:
        ValidacionError: If any non-empty row lacks a labor or a positive
            effort. Nothing is returned in that case.
    """
    no_vacias = [f for f in filas if not es_fila_vacia(f)]
    invalidas = [f for f in no_vacias if not es_fila_valida(f)]
    if invalidas:
        raise ValidacionError(
            "No se puede guardar: se tiene que seleccionar la labor y registrar los jornales.",
            regla=REGLA_LABOR_Y_JORNALES,
            filas=[(f.fecha.isoformat(), f.linea) for f in invalidas],
        )
    return no_vacias


def _a_detalle(plan_id: int, fila: FilaPlan) -> PlanDetalle:
    return PlanDetalle(
        plan_id=plan_id,
        fecha=fila.fecha,
        linea=fila.linea,
        lote_id=fila.lote_id.strip() or None,
        red_id=fila.red_id.strip() or None,
        sector_id=fila.sector_id.strip() or None,
        codigo_labor=fila.codigo_labor,
        ratio=a_numero(fila.ratio),
        ha_prog=a_numero(fila.ha_prog),
        jornales_prog=valor_jornales(fila),
        obs=fila.obs,
    )


def guardar_plan(
    db: Session,
    plan_id: int,
    filas: Iterable[FilaPlan],
    transaccional: bool | None = None,
) -> int:
    """Replace the persisted detail set of a plan with the grid rows.

    Args:
        db: Active SQLAlchemy session.
        plan_id: Plan being saved.
        filas: Every grid row, empty ones included.
        transaccional: Run delete and insert in one transaction. Defaults
            to ``settings.GUARDADO_TRANSACCIONAL``.

    Returns:
        Number of rows inserted; 0 means there was nothing to save and the
        stored detail was left as is.

    Raises:
        ValidacionError: If a non-empty row is incomplete.
        PersistenciaError: If the delete or the insert fails.
    """
    preparadas = validar_filas(filas)
    if not preparadas:
        logger.info("guardar_plan: plan_id=%d nothing to save", plan_id)
        return 0

    if transaccional is None:
        transaccional = get_settings().GUARDADO_TRANSACCIONAL

    borrado_confirmado = False
    try:
        db.query(PlanDetalle).filter(PlanDetalle.plan_id == plan_id).delete(synchronize_session=False)
        if not transaccional:
            db.commit()
            borrado_confirmado = True
        db.add_all([_a_detalle(plan_id, f) for f in preparadas])
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if borrado_confirmado:
            logger.exception("guardar_plan: insert failed after delete for plan_id=%d", plan_id)
            raise PersistenciaError(
                "Se eliminó el detalle anterior pero no se pudo guardar el nuevo. "
                "Vuelva a guardar para no perder el plan.",
                riesgo_perdida=True,
            ) from exc
        logger.exception("guardar_plan: save failed for plan_id=%d", plan_id)
        raise PersistenciaError("No se pudo guardar el plan.") from exc

    logger.info("guardar_plan: plan_id=%d saved %d rows", plan_id, len(preparadas))
    return len(preparadas)


# ---------------------------------------------------------------------------
# Read models over the in-memory grid
# ---------------------------------------------------------------------------


def totales(grid: PlanGrid) -> TotalesResponse:
    ha, jornales = grid.totales()
    return TotalesResponse(
        ha=ha,
        jornales=jornales,
        por_dia=[
            TotalDia(fecha=d, ha=t[0], jornales=t[1])
            for d, t in grid.totales_por_dia().items()
        ],
    )


def resumen_por_dia(grid: PlanGrid, catalogo: CatalogoIndex) -> list[ResumenDia]:
    """Per-day calendar summary: rows with a labor, named from the catalogue."""
    resumen: list[ResumenDia] = []
    por_dia = grid.totales_por_dia()
    for d in grid.dias:
        items: list[ResumenLaborItem] = []
        for fila in grid.filas_de(d):
            if not fila.codigo_labor:
                continue
            labor = catalogo.labor(fila.codigo_labor)
            items.append(
                ResumenLaborItem(
                    codigo_labor=fila.codigo_labor,
                    labor=labor.nombre if labor else "",
                    grupo=labor.grupo if labor else "",
                    ha=a_numero(fila.ha_prog),
                    jornales=valor_jornales(fila),
                )
            )
        ha, jornales = por_dia[d]
        resumen.append(ResumenDia(fecha=d, cantidad=len(items), ha=ha, jornales=jornales, items=items))
    return resumen


def filas_exportacion(
    grid: PlanGrid, catalogo: CatalogoIndex, departamento: Departamento
) -> list[FilaExportacion]:
    """Flat, ordered list of the non-empty rows with labor names resolved."""
    salida: list[FilaExportacion] = []
    for fila in grid.todas():
        if es_fila_vacia(fila):
            continue
        labor = catalogo.labor(fila.codigo_labor)
        salida.append(
            FilaExportacion(
                anio=grid.anio,
                mes=grid.mes,
                depto_id=departamento.id,
                departamento=departamento.departamento or "",
                cultivo=departamento.cultivo or "",
                fecha=fila.fecha,
                linea=fila.linea,
                lote_id=fila.lote_id,
                red_id=fila.red_id,
                sector_id=fila.sector_id,
                codigo_labor=fila.codigo_labor,
                labor=labor.nombre if labor else "",
                subgrupo=labor.subgrupo if labor else "",
                grupo=labor.grupo if labor else "",
                ha_prog=a_numero(fila.ha_prog),
                ratio=a_numero(fila.ratio),
                jornales_prog=valor_jornales(fila),
                modo=fila.modo_jornales,
                obs=fila.obs,
            )
        )
    return salida