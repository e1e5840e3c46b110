"""
Catalogue service layer.

Reads the reference data of a department (labors, fields, networks,
sectors) and the list of departments a user may plan.

Design notes
------------
- Departments are listed per user: ADMIN sees every active department,
  any other role only those granted in ``jefes_acceso`` for its email.
- Two department rows sharing the same normalised (departamento, cultivo)
  pair are collapsed into one option; the first row (by id) wins.
- Reference rows are converted into the frozen ``Ref*`` value types and
  passed as tuples to ``construir_catalogo``, which memoises on them.
- Networks and sectors are restricted to the fields of the catalogue.
- Any database failure is raised as ``CargaError`` so the open grid is
  left untouched.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.grid.catalogo import CatalogoIndex, construir_catalogo, etiqueta_departamento, norm_key
from app.grid.errores import CargaError
from app.grid.modelos import RefLabor, RefLote, RefRed, RefSector
from app.grid.reglas import a_numero
from app.models.departamento import Departamento
from app.models.jefe_acceso import JefeAcceso
from app.models.labor import Labor
from app.models.lote import Lote, Red, Sector
from app.models.usuario import Usuario
from app.schemas.catalogo import DepartamentoOpcion
from app.utils.constants import ROL_ADMIN

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


def deduplicar_departamentos(departamentos: list[Departamento]) -> list[Departamento]:
    """Keep the first department of each normalised (departamento, cultivo) pair."""
    vistos: set[str] = set()
    unicos: list[Departamento] = []
    for dep in departamentos:
        clave = f"{norm_key(dep.departamento)}|{norm_key(dep.cultivo)}"
        if clave in vistos:
            continue
        vistos.add(clave)
        unicos.append(dep)
    return unicos


def _departamentos_permitidos(db: Session, usuario: Usuario) -> list[Departamento]:
    query = db.query(Departamento).filter(Departamento.activo.is_(True))
    if usuario.rol != ROL_ADMIN:
        email = (usuario.email or "").strip().lower()
        ids = [
            row.depto_id
            for row in db.query(JefeAcceso.depto_id)
            .filter(JefeAcceso.activo.is_(True), JefeAcceso.email == email)
            .all()
        ]
        if not ids:
            return []
        query = query.filter(Departamento.id.in_(ids))
    return query.order_by(Departamento.departamento, Departamento.cultivo, Departamento.id).all()


def listar_departamentos(db: Session, usuario: Usuario) -> list[DepartamentoOpcion]:
    """Return the department options *usuario* may plan.

    Raises:
        CargaError: If the department query fails.
    """
    try:
        departamentos = deduplicar_departamentos(_departamentos_permitidos(db, usuario))
    except SQLAlchemyError as exc:
        logger.exception("listar_departamentos: query failed for %s", usuario.email)
        raise CargaError("No se pudieron cargar los departamentos.") from exc

    logger.debug("listar_departamentos: %s -> %d options", usuario.email, len(departamentos))
    return [
        DepartamentoOpcion(
            id=dep.id,
            departamento=dep.departamento or "",
            cultivo=dep.cultivo,
            jefe=dep.jefe,
            fundo=dep.fundo,
            etiqueta=etiqueta_departamento(dep.departamento, dep.cultivo),
        )
        for dep in departamentos
    ]


def obtener_departamento(db: Session, usuario: Usuario, depto_id: int) -> Departamento:
    """Fetch a department the user is allowed to plan.

    Raises:
        HTTPException 404: If the department does not exist or is inactive.
        HTTPException 403: If the user has no grant on it.
    """
    dep = (
        db.query(Departamento)
        .filter(Departamento.id == depto_id, Departamento.activo.is_(True))
        .first()
    )
    if dep is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Departamento con id={depto_id} no encontrado",
        )
    if usuario.rol != ROL_ADMIN:
        email = (usuario.email or "").strip().lower()
        concedido = (
            db.query(JefeAcceso.id)
            .filter(
                JefeAcceso.activo.is_(True),
                JefeAcceso.email == email,
                JefeAcceso.depto_id == depto_id,
            )
            .first()
        )
        if concedido is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tiene acceso a este departamento",
            )
    return dep


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


def _leer_referencias(
    db: Session, departamento: Departamento
) -> tuple[tuple[RefLabor, ...], tuple[RefLote, ...], tuple[RefRed, ...], tuple[RefSector, ...]]:
    nombre = (departamento.departamento or "").strip()
    cultivo = (departamento.cultivo or "").strip()
    fundo = (departamento.fundo or "").strip()

    q_labores = db.query(Labor).filter(Labor.activo.is_(True), Labor.departamento == nombre)
    q_lotes = db.query(Lote).filter(Lote.activo.is_(True))
    if cultivo:
        q_labores = q_labores.filter(Labor.cultivo == cultivo)
        q_lotes = q_lotes.filter(Lote.cultivo == cultivo)
    if fundo:
        q_lotes = q_lotes.filter(Lote.fundo == fundo)

    labores = tuple(
        RefLabor(
            codigo=lab.codigo,
            nombre=lab.nombre or "",
            grupo=lab.grupo or "",
            subgrupo=lab.subgrupo or "",
            um=lab.um or "",
            ratio_default=a_numero(lab.ratio_default),
        )
        for lab in q_labores.order_by(Labor.codigo).all()
    )
    lotes = tuple(
        RefLote(
            lote_id=lote.lote_id,
            cultivo=lote.cultivo or "",
            fundo=lote.fundo or "",
            ha_total=a_numero(lote.ha_total),
        )
        for lote in q_lotes.order_by(Lote.lote_id).all()
    )

    ids_lote = [lote.lote_id for lote in lotes]
    redes: tuple[RefRed, ...] = ()
    sectores: tuple[RefSector, ...] = ()
    if ids_lote:
        redes = tuple(
            RefRed(lote_id=red.lote_id, red_id=red.red_id, red_ref=red.red_ref or "")
            for red in db.query(Red).filter(Red.lote_id.in_(ids_lote)).order_by(Red.id).all()
        )
        sectores = tuple(
            RefSector(
                lote_id=sec.lote_id,
                red_id=sec.red_id,
                sector_id=sec.sector_id,
                ha=a_numero(sec.ha),
                variedad=sec.variedad or "",
            )
            for sec in db.query(Sector).filter(Sector.lote_id.in_(ids_lote)).order_by(Sector.id).all()
        )
    return labores, lotes, redes, sectores


def cargar_catalogo(db: Session, departamento: Departamento) -> CatalogoIndex:
    """Build the catalogue index of *departamento*.

    Args:
        db: Active SQLAlchemy session.
        departamento: Department whose name and crop filter the labors;
            its crop and estate filter the fields.

    Returns:
        The (possibly memoised) ``CatalogoIndex``.

    Raises:
        CargaError: If any reference query fails.
    """
    try:
        labores, lotes, redes, sectores = _leer_referencias(db, departamento)
    except SQLAlchemyError as exc:
        logger.exception("cargar_catalogo: reference read failed for depto_id=%s", departamento.id)
        raise CargaError("No se pudo cargar el catálogo del departamento.") from exc

    logger.debug(
        "cargar_catalogo: depto_id=%s labores=%d lotes=%d redes=%d sectores=%d",
        departamento.id, len(labores), len(lotes), len(redes), len(sectores),
    )
    return construir_catalogo(labores, lotes, redes, sectores)
