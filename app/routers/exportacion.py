"""
Exportación router.

Mounts under ``/api/exportar`` (prefix set in ``main.py``).

Both endpoints stream an ``.xlsx`` file with a
``Content-Disposition: attachment`` header so browsers prompt a download.

Endpoints
---------
GET /plan-mensual/{sesion_id}/excel   — Non-empty rows of an open session.
GET /plan-versiones/{version_id}/excel — Rows of a saved version.
"""

from __future__ import annotations

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.grid.catalogo import etiqueta_departamento
from app.models.usuario import Usuario
from app.services import catalogo_service, exportacion_service, plan_service, sesion_service, version_service
from app.services.auth_service import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Exportación"])

_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_RESPUESTA_XLSX = {200: {"description": "Archivo Excel generado.", "content": {_XLSX: {}}}}


def _stream(file_bytes: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(file_bytes),
        media_type=_XLSX,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(file_bytes)),
        },
    )


@router.get(
    "/plan-mensual/{sesion_id}/excel",
    summary="Exportar plan a Excel (.xlsx)",
    response_class=StreamingResponse,
    responses=_RESPUESTA_XLSX,
)
def exportar_plan(
    sesion_id: Annotated[str, Path(description="ID de la sesión de edición.")],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> StreamingResponse:
    sesion = sesion_service.registro.obtener(sesion_id, current_user)
    departamento = catalogo_service.obtener_departamento(db, current_user, sesion.depto_id)
    with sesion.lock:
        anio, mes = sesion.grid.anio, sesion.grid.mes
        filas = plan_service.filas_exportacion(sesion.grid, sesion.catalogo, departamento)

    logger.info("GET /exportar/plan-mensual/%s/excel rows=%d", sesion_id, len(filas))
    file_bytes = exportacion_service.excel_plan(filas, anio, mes, sesion.etiqueta)
    return _stream(file_bytes, exportacion_service.nombre_archivo("plan", anio, mes, departamento.id))


@router.get(
    "/plan-versiones/{version_id}/excel",
    summary="Exportar versión a Excel (.xlsx)",
    response_class=StreamingResponse,
    responses={**_RESPUESTA_XLSX, 404: {"description": "Versión no encontrada."}},
)
def exportar_version(
    version_id: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> StreamingResponse:
    version = version_service.obtener_version(db, version_id)
    departamento = catalogo_service.obtener_departamento(db, current_user, version.depto_id)
    detalle = version_service.detalle_version(db, version)

    logger.info("GET /exportar/plan-versiones/%d/excel rows=%d", version_id, len(detalle.filas))
    file_bytes = exportacion_service.excel_version(
        detalle, etiqueta_departamento(departamento.departamento, departamento.cultivo)
    )
    return _stream(
        file_bytes,
        exportacion_service.nombre_archivo("version", version.anio, version.mes, version.id),
    )
