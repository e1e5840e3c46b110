"""
Plan versiones router.

Mounts under ``/api/plan-versiones`` (prefix set in ``main.py``).

Versions snapshot the *saved* detail of a plan; save first to include the
latest edits.

Endpoints
---------
GET  /planes/{plan_id}   — Versions of a plan, most recent first.
POST /planes/{plan_id}   — Create the next version of a plan.
GET  /periodo            — Versions of the plan of (anio, mes, depto_id).
GET  /{version_id}       — Rows and totals of one version.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.plan import Plan
from app.models.usuario import Usuario
from app.schemas.common import ErrorPlanResponse
from app.schemas.version import (
    DetalleVersionResponse,
    VersionCrearRequest,
    VersionListResponse,
    VersionResponse,
)
from app.services import catalogo_service, plan_service, version_service
from app.services.auth_service import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Plan Versiones"])

DbDep = Annotated[Session, Depends(get_db)]
UsuarioDep = Annotated[Usuario, Depends(get_current_user)]


def _plan_accesible(db: Session, usuario: Usuario, plan_id: int) -> Plan:
    plan = plan_service.obtener_plan(db, plan_id)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Plan con id={plan_id} no encontrado",
        )
    catalogo_service.obtener_departamento(db, usuario, plan.depto_id)
    return plan


@router.get(
    "/planes/{plan_id}",
    response_model=VersionListResponse,
    summary="Versiones de un plan",
    description="Ordenadas por secuencia descendente; ``seleccionada_id`` es la más reciente.",
)
def listar_versiones(
    plan_id: Annotated[int, Path(ge=1)], db: DbDep, current_user: UsuarioDep
) -> VersionListResponse:
    _plan_accesible(db, current_user, plan_id)
    return version_service.listar_versiones(db, plan_id)


@router.post(
    "/planes/{plan_id}",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear versión",
    description="Copia el detalle guardado del plan como la siguiente versión (inmutable).",
    responses={
        409: {"description": "Ya se está creando una versión.", "model": ErrorPlanResponse},
        500: {"description": "Error al crear la versión.", "model": ErrorPlanResponse},
    },
)
def crear_version(
    plan_id: Annotated[int, Path(ge=1)],
    db: DbDep,
    current_user: UsuarioDep,
    body: VersionCrearRequest | None = None,
) -> VersionResponse:
    plan = _plan_accesible(db, current_user, plan_id)
    return version_service.crear_version(
        db, plan, current_user.email, body.comentario if body else None
    )


@router.get(
    "/periodo",
    response_model=VersionListResponse,
    summary="Versiones por periodo y departamento",
)
def versiones_por_periodo(
    anio: Annotated[int, Query(ge=2000, le=2100)],
    mes: Annotated[int, Query(ge=1, le=12)],
    depto_id: Annotated[int, Query(ge=1)],
    db: DbDep,
    current_user: UsuarioDep,
) -> VersionListResponse:
    catalogo_service.obtener_departamento(db, current_user, depto_id)
    plan = (
        db.query(Plan)
        .filter(Plan.anio == anio, Plan.mes == mes, Plan.depto_id == depto_id)
        .first()
    )
    if plan is None:
        return VersionListResponse(versiones=[], seleccionada_id=None)
    return version_service.listar_versiones(db, plan.id)


@router.get(
    "/{version_id}",
    response_model=DetalleVersionResponse,
    summary="Detalle de una versión",
    description="Filas por fecha y línea con totales por fecha y del mes. Solo lectura.",
    responses={404: {"description": "Versión no encontrada."}},
)
def detalle_version(
    version_id: Annotated[int, Path(ge=1)], db: DbDep, current_user: UsuarioDep
) -> DetalleVersionResponse:
    version = version_service.obtener_version(db, version_id)
    _plan_accesible(db, current_user, version.plan_id)
    return version_service.detalle_version(db, version)
