"""
Catálogos router.

Mounts under ``/api/catalogos`` (prefix set in ``main.py``).

Endpoints
---------
GET /departamentos            — Departments the caller may plan.
GET /departamentos/{id}       — Full catalogue of one department (labors,
                                subgroups, fields with networks and sectors).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.database import get_db
from app.grid.catalogo import formatear_red, formatear_sector
from app.models.usuario import Usuario
from app.schemas.catalogo import (
    CatalogoResponse,
    DepartamentoOpcion,
    LaborItem,
    LoteItem,
    RedItem,
    SectorItem,
)
from app.services import catalogo_service
from app.services.auth_service import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catálogos"])


@router.get(
    "/departamentos",
    response_model=list[DepartamentoOpcion],
    summary="Departamentos disponibles",
    description=(
        "ADMIN ve todos los departamentos activos; el resto de usuarios solo los "
        "asignados en ``jefes_acceso``. Se agrupan por (departamento, cultivo)."
    ),
    responses={503: {"description": "No se pudieron cargar los departamentos."}},
)
def listar_departamentos(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> list[DepartamentoOpcion]:
    return catalogo_service.listar_departamentos(db, current_user)


@router.get(
    "/departamentos/{depto_id}",
    response_model=CatalogoResponse,
    summary="Catálogo del departamento",
    responses={
        403: {"description": "Sin acceso al departamento."},
        404: {"description": "Departamento no encontrado."},
        503: {"description": "No se pudo cargar el catálogo."},
    },
)
def obtener_catalogo(
    depto_id: Annotated[int, Path(ge=1, description="ID del departamento.")],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> CatalogoResponse:
    departamento = catalogo_service.obtener_departamento(db, current_user, depto_id)
    catalogo = catalogo_service.cargar_catalogo(db, departamento)

    lotes = [
        LoteItem(
            lote_id=lote.lote_id,
            cultivo=lote.cultivo,
            fundo=lote.fundo,
            ha_total=lote.ha_total,
            redes=[
                RedItem(
                    red_id=red.red_id,
                    etiqueta=formatear_red(red.red_id),
                    red_ref=red.red_ref,
                    sectores=[
                        SectorItem(
                            sector_id=sec.sector_id,
                            etiqueta=formatear_sector(sec.sector_id),
                            ha=sec.ha,
                            variedad=sec.variedad,
                        )
                        for sec in catalogo.sectores_de(lote.lote_id, red.red_id)
                    ],
                )
                for red in catalogo.redes_de(lote.lote_id)
            ],
        )
        for lote in catalogo.lotes
    ]
    return CatalogoResponse(
        depto_id=departamento.id,
        subgrupos=list(catalogo.subgrupos),
        labores=[
            LaborItem(
                codigo=lab.codigo,
                nombre=lab.nombre,
                grupo=lab.grupo,
                subgrupo=lab.subgrupo,
                um=lab.um,
                ratio_default=lab.ratio_default,
            )
            for lab in catalogo.labores
        ],
        lotes=lotes,
    )
