"""
Plan mensual router.

Mounts under ``/api/plan-mensual`` (prefix set in ``main.py``).

The grid of a plan is edited through an *editing session* opened for
(anio, mes, depto_id). Row edits and replication only change the
session's in-memory grid; ``POST /guardar`` persists it.

Endpoints
---------
POST   /sesiones                                          — Open a session.
GET    /sesiones/{sid}                                    — Session and grid.
DELETE /sesiones/{sid}                                    — Close a session.
POST   /sesiones/{sid}/recargar                           — Reload persisted rows.
PUT    /sesiones/{sid}/periodo                            — Change month.
PUT    /sesiones/{sid}/departamento                       — Change department.
POST   /sesiones/{sid}/dias/{fecha}/filas                 — Add a blank row.
PATCH  /sesiones/{sid}/dias/{fecha}/filas/{ui_id}         — Edit a row.
DELETE /sesiones/{sid}/dias/{fecha}/filas/{ui_id}         — Remove a row.
POST   /sesiones/{sid}/dias/{fecha}/filas/{ui_id}/duplicar — Duplicate a row.
POST   /sesiones/{sid}/dias/{fecha}/filas/{ui_id}/replicar — Copy/move a row to a range.
POST   /sesiones/{sid}/replicar                           — Copy/move a day.
POST   /sesiones/{sid}/guardar                            — Persist the grid.
GET    /sesiones/{sid}/totales                            — Whole-plan and per-day totals.
GET    /sesiones/{sid}/calendario                         — Calendar weeks and day summary.
GET    /sesiones/{sid}/exportacion                        — Flat export (JSON).
"""

from __future__ import annotations

import datetime
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.grid.filas import semanas_calendario
from app.models.usuario import Usuario
from app.schemas.common import ErrorPlanResponse, MessageResponse
from app.schemas.plan import (
    CalendarioResponse,
    DepartamentoRequest,
    FilaCambios,
    FilaExportacion,
    FilaResponse,
    GuardadoResponse,
    PeriodoRequest,
    ReplicacionResponse,
    ReplicarDiaRequest,
    ReplicarFilaRequest,
    SesionAbrirRequest,
    SesionResponse,
    TotalesResponse,
)
from app.services import catalogo_service, plan_service, sesion_service
from app.services.auth_service import get_current_user
from app.services.sesion_service import SesionPlan

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Plan Mensual"])

_ERRORES = {
    404: {"description": "Sesión o fila no encontrada."},
    422: {"description": "Cambio inválido.", "model": ErrorPlanResponse},
}


def _sesion(
    sesion_id: Annotated[str, Path(description="ID de la sesión de edición.")],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> SesionPlan:
    return sesion_service.registro.obtener(sesion_id, current_user)


SesionDep = Annotated[SesionPlan, Depends(_sesion)]
DbDep = Annotated[Session, Depends(get_db)]
UsuarioDep = Annotated[Usuario, Depends(get_current_user)]


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


@router.post(
    "/sesiones",
    response_model=SesionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Abrir sesión de edición",
    description=(
        "Asegura el plan de (anio, mes, departamento), creándolo en BORRADOR si no "
        "existe, y carga su detalle guardado en una grilla en memoria."
    ),
    responses={
        403: {"description": "Sin acceso al departamento."},
        404: {"description": "Departamento no encontrado."},
        503: {"description": "Error de carga.", "model": ErrorPlanResponse},
    },
)
def abrir_sesion(body: SesionAbrirRequest, db: DbDep, current_user: UsuarioDep) -> SesionResponse:
    sesion = sesion_service.abrir_sesion(db, current_user, body.anio, body.mes, body.depto_id)
    return sesion_service.a_respuesta(sesion)


@router.get("/sesiones/{sesion_id}", response_model=SesionResponse, summary="Estado de la sesión")
def obtener_sesion(sesion: SesionDep) -> SesionResponse:
    return sesion_service.a_respuesta(sesion)


@router.delete("/sesiones/{sesion_id}", response_model=MessageResponse, summary="Cerrar sesión")
def cerrar_sesion(sesion: SesionDep) -> MessageResponse:
    sesion_service.registro.cerrar(sesion.id)
    logger.info("cerrar_sesion: %s closed", sesion.id)
    return MessageResponse(message="Sesión cerrada")


@router.post(
    "/sesiones/{sesion_id}/recargar",
    response_model=SesionResponse,
    summary="Recargar detalle guardado",
    description="Descarta los cambios no guardados y vuelve a cargar el detalle del plan.",
)
def recargar(sesion: SesionDep, db: DbDep) -> SesionResponse:
    sesion_service.cargar(db, sesion)
    return sesion_service.a_respuesta(sesion)


@router.put("/sesiones/{sesion_id}/periodo", response_model=SesionResponse, summary="Cambiar mes")
def cambiar_periodo(
    body: PeriodoRequest, sesion: SesionDep, db: DbDep, current_user: UsuarioDep
) -> SesionResponse:
    sesion_service.cambiar_periodo(db, current_user, sesion, body.anio, body.mes)
    return sesion_service.a_respuesta(sesion)


@router.put(
    "/sesiones/{sesion_id}/departamento",
    response_model=SesionResponse,
    summary="Cambiar departamento",
    description="Reinicia los valores de todas las filas y carga el plan del nuevo departamento.",
)
def cambiar_departamento(
    body: DepartamentoRequest, sesion: SesionDep, db: DbDep, current_user: UsuarioDep
) -> SesionResponse:
    sesion_service.cambiar_departamento(db, current_user, sesion, body.depto_id)
    return sesion_service.a_respuesta(sesion)


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@router.post(
    "/sesiones/{sesion_id}/dias/{fecha}/filas",
    response_model=FilaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Agregar fila",
    responses=_ERRORES,
)
def agregar_fila(fecha: datetime.date, sesion: SesionDep) -> FilaResponse:
    return sesion_service.fila_a_respuesta(sesion_service.agregar_fila(sesion, fecha))


@router.patch(
    "/sesiones/{sesion_id}/dias/{fecha}/filas/{ui_id}",
    response_model=FilaResponse,
    summary="Editar fila",
    description=(
        "Aplica solo los campos enviados. Cambiar el lote limpia red y sector; "
        "cambiar la red limpia el sector; elegir un sector toma su área; elegir una "
        "labor toma su subgrupo y ratio por defecto. En modo AUTO los jornales se "
        "recalculan como ha × ratio."
    ),
    responses=_ERRORES,
)
def editar_fila(fecha: datetime.date, ui_id: str, body: FilaCambios, sesion: SesionDep) -> FilaResponse:
    fila = sesion_service.editar_fila(sesion, fecha, ui_id, body.model_dump(exclude_unset=True))
    return sesion_service.fila_a_respuesta(fila)


@router.delete(
    "/sesiones/{sesion_id}/dias/{fecha}/filas/{ui_id}",
    response_model=MessageResponse,
    summary="Quitar fila",
    responses=_ERRORES,
)
def quitar_fila(fecha: datetime.date, ui_id: str, sesion: SesionDep) -> MessageResponse:
    sesion_service.quitar_fila(sesion, fecha, ui_id)
    return MessageResponse(message="Fila eliminada")


@router.post(
    "/sesiones/{sesion_id}/dias/{fecha}/filas/{ui_id}/duplicar",
    response_model=FilaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicar fila",
    responses=_ERRORES,
)
def duplicar_fila(fecha: datetime.date, ui_id: str, sesion: SesionDep) -> FilaResponse:
    return sesion_service.fila_a_respuesta(sesion_service.duplicar_fila(sesion, fecha, ui_id))


@router.post(
    "/sesiones/{sesion_id}/dias/{fecha}/filas/{ui_id}/replicar",
    response_model=ReplicacionResponse,
    summary="Copiar o mover una fila a un rango",
    description="MOVER quita la fila de su fecha cuando el rango tiene al menos un destino.",
    responses=_ERRORES,
)
def replicar_fila(
    fecha: datetime.date, ui_id: str, body: ReplicarFilaRequest, sesion: SesionDep
) -> ReplicacionResponse:
    destinos = sesion_service.replicar_fila(sesion, body.operacion, fecha, ui_id, body.inicio, body.fin)
    return ReplicacionResponse(destinos=destinos, filas=1 if destinos else 0)


@router.post(
    "/sesiones/{sesion_id}/replicar",
    response_model=ReplicacionResponse,
    summary="Copiar o mover un día",
    description=(
        "COPIAR_DIA / MOVER_DIA usan ``destino``; COPIAR_RANGO / MOVER_RANGO usan "
        "``inicio`` y ``fin`` (en cualquier orden, inclusivos, sin el día origen). "
        "Las operaciones MOVER vacían el día origen."
    ),
    responses=_ERRORES,
)
def replicar_dia(body: ReplicarDiaRequest, sesion: SesionDep) -> ReplicacionResponse:
    destinos, filas = sesion_service.replicar_dia(
        sesion, body.operacion, body.origen, body.destino, body.inicio, body.fin
    )
    return ReplicacionResponse(destinos=destinos, filas=filas)


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------


@router.post(
    "/sesiones/{sesion_id}/guardar",
    response_model=GuardadoResponse,
    summary="Guardar plan",
    description=(
        "Valida las filas no vacías (labor y jornales > 0) y reemplaza el detalle "
        "guardado del plan. Si no hay filas con datos no se escribe nada."
    ),
    responses={
        409: {"description": "Ya hay un guardado en curso.", "model": ErrorPlanResponse},
        422: {"description": "Filas incompletas.", "model": ErrorPlanResponse},
        500: {"description": "Error al guardar.", "model": ErrorPlanResponse},
    },
)
def guardar(sesion: SesionDep, db: DbDep) -> GuardadoResponse:
    guardadas = sesion_service.guardar(db, sesion)
    if guardadas == 0:
        return GuardadoResponse(guardadas=0, message="No hay cambios para guardar")
    return GuardadoResponse(guardadas=guardadas, message=f"{guardadas} registro(s) guardado(s)")


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


@router.get("/sesiones/{sesion_id}/totales", response_model=TotalesResponse, summary="Totales del plan")
def obtener_totales(sesion: SesionDep) -> TotalesResponse:
    with sesion.lock:
        return plan_service.totales(sesion.grid)


@router.get(
    "/sesiones/{sesion_id}/calendario",
    response_model=CalendarioResponse,
    summary="Vista calendario",
    description="Semanas del mes (lunes a domingo) y resumen de labores por día.",
)
def obtener_calendario(sesion: SesionDep) -> CalendarioResponse:
    with sesion.lock:
        grid = sesion.grid
        return CalendarioResponse(
            anio=grid.anio,
            mes=grid.mes,
            semanas=semanas_calendario(grid.anio, grid.mes),
            resumen=plan_service.resumen_por_dia(grid, sesion.catalogo),
        )


@router.get(
    "/sesiones/{sesion_id}/exportacion",
    response_model=list[FilaExportacion],
    summary="Exportación plana",
    description="Filas no vacías ordenadas por fecha y línea, con nombre, subgrupo y grupo de la labor.",
)
def exportacion(sesion: SesionDep, db: DbDep, current_user: UsuarioDep) -> list[FilaExportacion]:
    departamento = catalogo_service.obtener_departamento(db, current_user, sesion.depto_id)
    with sesion.lock:
        return plan_service.filas_exportacion(sesion.grid, sesion.catalogo, departamento)
