"""
Plan versions service layer.

A version is an immutable, sequenced snapshot of a plan's *persisted*
detail rows; unsaved edits of an open grid are never included.

Design notes
------------
- ``secuencia`` is ``max(secuencia) + 1`` over the plan's versions (1 for
  the first). The unique (plan_id, secuencia) constraint rejects a
  concurrent duplicate, which surfaces as ``PersistenciaError``.
- Detail rows are copied in batches of ``VERSION_LOTE_INSERCION``; the
  header and every batch are committed together.
- A plan with no detail rows still gets a (empty) version.
- Creating a version for a plan that already has one in flight is
  dropped with ``OperacionEnCursoError``; versions are never updated or
  deleted.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.grid.errores import CargaError, OperacionEnCursoError, PersistenciaError
from app.grid.reglas import a_numero
from app.models.labor import Labor
from app.models.plan import Plan, PlanDetalle
from app.models.plan_version import PlanDetalleVersion, PlanVersion
from app.schemas.version import (
    DetalleVersionFila,
    DetalleVersionResponse,
    TotalFechaVersion,
    VersionListResponse,
    VersionResponse,
)

logger = logging.getLogger(__name__)

# Plans with a version being created right now
_EN_CURSO: set[int] = set()
_EN_CURSO_LOCK = threading.Lock()


def _siguiente_secuencia(db: Session, plan_id: int) -> int:
    actual = (
        db.query(func.coalesce(func.max(PlanVersion.secuencia), 0))
        .filter(PlanVersion.plan_id == plan_id)
        .scalar()
    )
    return int(actual or 0) + 1


def _contar_filas(db: Session, version_ids: list[int]) -> dict[int, int]:
    if not version_ids:
        return {}
    rows = (
        db.query(PlanDetalleVersion.version_id, func.count(PlanDetalleVersion.id))
        .filter(PlanDetalleVersion.version_id.in_(version_ids))
        .group_by(PlanDetalleVersion.version_id)
        .all()
    )
    return {version_id: int(n) for version_id, n in rows}


def _a_respuesta(version: PlanVersion, filas: int) -> VersionResponse:
    respuesta = VersionResponse.model_validate(version)
    respuesta.filas = filas
    return respuesta


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def crear_version(
    db: Session,
    plan: Plan,
    creado_por: str | None,
    comentario: str | None = None,
) -> VersionResponse:
    """Snapshot the persisted detail of *plan* as its next version.

    Args:
        db: Active SQLAlchemy session.
        plan: Plan to snapshot.
        creado_por: Identity (email) of the requesting user.
        comentario: Optional free-text comment.

    Returns:
        The new version header, with the number of rows copied.

    Raises:
        OperacionEnCursoError: If a version of this plan is already being
            created.
        PersistenciaError: If the snapshot could not be written; no partial
            version is left behind.
    """
    with _EN_CURSO_LOCK:
        if plan.id in _EN_CURSO:
            logger.warning("crear_version: plan_id=%d already in progress, dropped", plan.id)
            raise OperacionEnCursoError("Ya se está creando una versión de este plan.")
        _EN_CURSO.add(plan.id)

    try:
        return _crear_version(db, plan, creado_por, comentario)
    finally:
        with _EN_CURSO_LOCK:
            _EN_CURSO.discard(plan.id)


def _crear_version(
    db: Session, plan: Plan, creado_por: str | None, comentario: str | None
) -> VersionResponse:
    lote = max(1, get_settings().VERSION_LOTE_INSERCION)
    try:
        version = PlanVersion(
            plan_id=plan.id,
            depto_id=plan.depto_id,
            anio=plan.anio,
            mes=plan.mes,
            secuencia=_siguiente_secuencia(db, plan.id),
            created_by=creado_por,
            comentario=(comentario or "").strip() or None,
        )
        db.add(version)
        db.flush()

        detalle = (
            db.query(PlanDetalle)
            .filter(PlanDetalle.plan_id == plan.id)
            .order_by(PlanDetalle.fecha, PlanDetalle.linea, PlanDetalle.id)
            .all()
        )
        for inicio in range(0, len(detalle), lote):
            db.add_all(
                [
                    PlanDetalleVersion(
                        version_id=version.id,
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
                    for r in detalle[inicio : inicio + lote]
                ]
            )
            db.flush()
        db.commit()
        db.refresh(version)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("crear_version: snapshot failed for plan_id=%d", plan.id)
        raise PersistenciaError("No se pudo crear la versión del plan.") from exc

    logger.info(
        "crear_version: plan_id=%d secuencia=%d rows=%d by %s",
        plan.id, version.secuencia, len(detalle), creado_por,
    )
    return _a_respuesta(version, len(detalle))


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


def listar_versiones(db: Session, plan_id: int) -> VersionListResponse:
    """Versions of a plan, most recent (highest ``secuencia``) first.

    Raises:
        CargaError: If the query fails.
    """
    try:
        versiones = (
            db.query(PlanVersion)
            .filter(PlanVersion.plan_id == plan_id)
            .order_by(PlanVersion.secuencia.desc())
            .all()
        )
        conteo = _contar_filas(db, [v.id for v in versiones])
    except SQLAlchemyError as exc:
        logger.exception("listar_versiones: query failed for plan_id=%d", plan_id)
        raise CargaError("No se pudieron cargar las versiones.") from exc

    logger.debug("listar_versiones: plan_id=%d versions=%d", plan_id, len(versiones))
    return VersionListResponse(
        versiones=[_a_respuesta(v, conteo.get(v.id, 0)) for v in versiones],
        seleccionada_id=versiones[0].id if versiones else None,
    )


def obtener_version(db: Session, version_id: int) -> PlanVersion:
    """Fetch a version header.

    Raises:
        HTTPException 404: If no version with the given ID exists.
    """
    version = db.query(PlanVersion).filter(PlanVersion.id == version_id).first()
    if version is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Versión con id={version_id} no encontrada",
        )
    return version


def detalle_version(db: Session, version: PlanVersion) -> DetalleVersionResponse:
    """Read-only rows of a version with per-date and whole-version totals.

    Labor names are resolved against the current labor catalogue; codes no
    longer present are shown without a name.

    Raises:
        CargaError: If the query fails.
    """
    try:
        rows = (
            db.query(PlanDetalleVersion)
            .filter(PlanDetalleVersion.version_id == version.id)
            .order_by(PlanDetalleVersion.fecha, PlanDetalleVersion.linea, PlanDetalleVersion.id)
            .all()
        )
        codigos = {r.codigo_labor for r in rows if r.codigo_labor is not None}
        labores = (
            {lab.codigo: lab for lab in db.query(Labor).filter(Labor.codigo.in_(codigos)).all()}
            if codigos
            else {}
        )
    except SQLAlchemyError as exc:
        logger.exception("detalle_version: query failed for version_id=%d", version.id)
        raise CargaError("No se pudo cargar la versión.") from exc

    filas: list[DetalleVersionFila] = []
    por_fecha: dict = defaultdict(lambda: [0, 0.0, 0.0])
    for r in rows:
        lab = labores.get(r.codigo_labor)
        ha, jornales = a_numero(r.ha_prog), a_numero(r.jornales_prog)
        filas.append(
            DetalleVersionFila(
                fecha=r.fecha,
                linea=r.linea,
                lote_id=r.lote_id,
                red_id=r.red_id,
                sector_id=r.sector_id,
                codigo_labor=r.codigo_labor,
                labor=lab.nombre if lab else "",
                grupo=(lab.grupo or "") if lab else "",
                subgrupo=(lab.subgrupo or "") if lab else "",
                ratio=a_numero(r.ratio),
                ha_prog=ha,
                jornales_prog=jornales,
                obs=r.obs,
            )
        )
        acumulado = por_fecha[r.fecha]
        acumulado[0] += 1
        acumulado[1] += ha
        acumulado[2] += jornales

    logger.debug("detalle_version: version_id=%d rows=%d", version.id, len(filas))
    return DetalleVersionResponse(
        version=_a_respuesta(version, len(filas)),
        filas=filas,
        por_fecha=[
            TotalFechaVersion(fecha=f, cantidad=c, ha=h, jornales=j)
            for f, (c, h, j) in sorted(por_fecha.items())
        ],
        ha_total=sum(f.ha_prog for f in filas),
        jornales_total=sum(f.jornales_prog for f in filas),
    )
