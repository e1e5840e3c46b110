"""
Editing sessions of the monthly plan.

An editing session owns the in-memory ``PlanGrid`` of one user, together
with the catalogue of the department being planned and the id of the
backing ``Plan``. Grid edits never touch the database; only loads, saves
and snapshots do.

Design notes
------------
- Every session has a re-entrant lock. Grid mutations run to completion
  under it; database reads and writes run outside it, so a slow query
  never blocks edits of the same session.
- Loads take a token from the grid before querying and apply the result
  only if that token is still current; a period or department change in
  between makes the pending load stale and it is discarded.
- A save (or snapshot) requested while one is already running for the
  session is dropped with ``OperacionEnCursoError``; it is not queued.
- Sessions are process-local and expire after
  ``SESION_INACTIVIDAD_MINUTOS`` of inactivity. Two sessions on the same
  plan do not coordinate: the last save wins.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.config import get_settings
from app.grid import replicacion
from app.grid.catalogo import CatalogoIndex, etiqueta_departamento
from app.grid.errores import OperacionEnCursoError
from app.grid.filas import PlanGrid
from app.grid.modelos import FilaPlan
from app.grid.reglas import aplicar_cambios, es_fila_vacia, es_fila_valida, texto_jornales, valor_jornales
from app.models.usuario import Usuario
from app.schemas.plan import DiaResponse, FilaResponse, SesionResponse
from app.services import catalogo_service, plan_service
from app.utils.constants import OPERACIONES_DIA, OPERACIONES_FILA

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SesionPlan:
    """State of one user's open plan.

    Attributes:
        id: Session identifier used in the API routes.
        usuario_id: Owner of the session.
        depto_id: Department being planned.
        etiqueta: Department display label.
        plan_id: Persisted plan backing the grid.
        grid: In-memory rows of the month.
        catalogo: Catalogue of the department.
        guardando: A save is in flight.
        ultimo_uso: Last time the session was accessed.
    """

    id: str
    usuario_id: int
    depto_id: int
    etiqueta: str
    plan_id: int
    grid: PlanGrid
    catalogo: CatalogoIndex
    guardando: bool = False
    ultimo_uso: datetime = field(default_factory=datetime.now)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


class RegistroSesiones:
    """Process-local registry of open editing sessions."""

    def __init__(self) -> None:
        self._sesiones: dict[str, SesionPlan] = {}
        self._lock = threading.Lock()

    def registrar(self, sesion: SesionPlan) -> None:
        with self._lock:
            self._purgar()
            self._sesiones[sesion.id] = sesion

    def obtener(self, sesion_id: str, usuario: Usuario) -> SesionPlan:
        """Fetch a session owned by *usuario*.

        Raises:
            HTTPException 404: If the session does not exist or expired.
            HTTPException 403: If it belongs to another user.
        """
        with self._lock:
            self._purgar()
            sesion = self._sesiones.get(sesion_id)
        if sesion is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Sesión '{sesion_id}' no encontrada o expirada",
            )
        if sesion.usuario_id != usuario.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="La sesión pertenece a otro usuario",
            )
        sesion.ultimo_uso = datetime.now()
        return sesion

    def cerrar(self, sesion_id: str) -> bool:
        with self._lock:
            return self._sesiones.pop(sesion_id, None) is not None

    def vaciar(self) -> None:
        with self._lock:
            self._sesiones.clear()

    def _purgar(self) -> None:
        limite = datetime.now() - timedelta(minutes=get_settings().SESION_INACTIVIDAD_MINUTOS)
        vencidas = [k for k, s in self._sesiones.items() if s.ultimo_uso < limite]
        for k in vencidas:
            del self._sesiones[k]
        if vencidas:
            logger.info("RegistroSesiones: expired %d idle sessions", len(vencidas))


registro = RegistroSesiones()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def abrir_sesion(db: Session, usuario: Usuario, anio: int, mes: int, depto_id: int) -> SesionPlan:
    """Open a session on (anio, mes, depto_id) and load its persisted rows.

    Raises:
        HTTPException 403/404: If the department is not accessible.
        CargaError: If the catalogue, plan or detail cannot be read.
    """
    departamento = catalogo_service.obtener_departamento(db, usuario, depto_id)
    catalogo = catalogo_service.cargar_catalogo(db, departamento)
    plan = plan_service.asegurar_plan(db, departamento, anio, mes)

    sesion = SesionPlan(
        id=uuid.uuid4().hex,
        usuario_id=usuario.id,
        depto_id=departamento.id,
        etiqueta=etiqueta_departamento(departamento.departamento, departamento.cultivo),
        plan_id=plan.id,
        grid=PlanGrid(anio, mes),
        catalogo=catalogo,
    )
    cargar(db, sesion)
    registro.registrar(sesion)
    logger.info(
        "abrir_sesion: %s opened %s on plan_id=%d (%d-%02d)",
        usuario.email, sesion.id, plan.id, anio, mes,
    )
    return sesion


def cargar(db: Session, sesion: SesionPlan) -> bool:
    """Replace the grid with the persisted detail of the session's plan.

    Returns:
        ``False`` if a period or department change made the load stale
        while it was running.
    """
    with sesion.lock:
        token = sesion.grid.emitir_token()
        plan_id = sesion.plan_id
    filas = plan_service.leer_detalle(db, plan_id)
    with sesion.lock:
        aplicada = sesion.grid.aplicar_carga(token, filas, sesion.catalogo)
    if aplicada:
        logger.debug("cargar: session %s loaded %d rows", sesion.id, len(filas))
    return aplicada


def cambiar_periodo(db: Session, usuario: Usuario, sesion: SesionPlan, anio: int, mes: int) -> SesionPlan:
    """Switch the session to another month of the same department."""
    with sesion.lock:
        sesion.grid.cambiar_periodo(anio, mes)
        token = sesion.grid.emitir_token()

    departamento = catalogo_service.obtener_departamento(db, usuario, sesion.depto_id)
    plan = plan_service.asegurar_plan(db, departamento, anio, mes)

    with sesion.lock:
        if not sesion.grid.token_vigente(token):
            logger.warning("cambiar_periodo: session %s changed again, skipping reload", sesion.id)
            return sesion
        sesion.plan_id = plan.id
    cargar(db, sesion)
    logger.info("cambiar_periodo: session %s -> %d-%02d plan_id=%d", sesion.id, anio, mes, plan.id)
    return sesion


def cambiar_departamento(db: Session, usuario: Usuario, sesion: SesionPlan, depto_id: int) -> SesionPlan:
    """Switch the session to another department, keeping the month.

    Every row's location, labor and values are reset at once; the rows of
    the new department's plan then replace them when the load completes.
    """
    departamento = catalogo_service.obtener_departamento(db, usuario, depto_id)
    catalogo = catalogo_service.cargar_catalogo(db, departamento)

    with sesion.lock:
        sesion.catalogo = catalogo
        sesion.depto_id = departamento.id
        sesion.etiqueta = etiqueta_departamento(departamento.departamento, departamento.cultivo)
        sesion.grid.resetear_valores()
        token = sesion.grid.emitir_token()
        anio, mes = sesion.grid.anio, sesion.grid.mes

    plan = plan_service.asegurar_plan(db, departamento, anio, mes)

    with sesion.lock:
        if not sesion.grid.token_vigente(token):
            logger.warning("cambiar_departamento: session %s changed again, skipping reload", sesion.id)
            return sesion
        sesion.plan_id = plan.id
    cargar(db, sesion)
    logger.info("cambiar_departamento: session %s -> depto_id=%d plan_id=%d", sesion.id, depto_id, plan.id)
    return sesion


def guardar(db: Session, sesion: SesionPlan) -> int:
    """Persist the session's grid; see ``plan_service.guardar_plan``.

    Raises:
        OperacionEnCursoError: If a save of this session is already running.
    """
    with sesion.lock:
        if sesion.guardando:
            logger.warning("guardar: session %s already saving, dropped", sesion.id)
            raise OperacionEnCursoError("Ya se está guardando este plan.")
        sesion.guardando = True
        filas = sesion.grid.todas()
        plan_id = sesion.plan_id
    try:
        return plan_service.guardar_plan(db, plan_id, filas)
    finally:
        with sesion.lock:
            sesion.guardando = False


# ---------------------------------------------------------------------------
# Grid edits
# ---------------------------------------------------------------------------


def _rechazar(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def agregar_fila(sesion: SesionPlan, fecha: date) -> FilaPlan:
    with sesion.lock:
        try:
            return sesion.grid.agregar_fila(fecha)
        except ValueError as exc:
            raise _rechazar(exc) from exc


def duplicar_fila(sesion: SesionPlan, fecha: date, ui_id: str) -> FilaPlan:
    with sesion.lock:
        try:
            return sesion.grid.duplicar_fila(fecha, ui_id)
        except ValueError as exc:
            raise _rechazar(exc) from exc


def quitar_fila(sesion: SesionPlan, fecha: date, ui_id: str) -> None:
    with sesion.lock:
        try:
            sesion.grid.quitar_fila(fecha, ui_id)
        except ValueError as exc:
            raise _rechazar(exc) from exc


def editar_fila(sesion: SesionPlan, fecha: date, ui_id: str, cambios: Mapping[str, Any]) -> FilaPlan:
    """Apply a partial change set to one row, with all its triggers.

    Raises:
        HTTPException 422: If the change breaks the location hierarchy,
            names a labor outside the catalogue, or edits the effort of an
            ``AUTO`` row.
        FilaNoEncontradaError: If the row does not exist.
    """
    with sesion.lock:
        try:
            return sesion.grid.transformar_fila(
                fecha, ui_id, lambda f: aplicar_cambios(f, cambios, sesion.catalogo)
            )
        except ValueError as exc:
            raise _rechazar(exc) from exc


def replicar_dia(
    sesion: SesionPlan,
    operacion: str,
    origen: date,
    destino: date | None = None,
    inicio: date | None = None,
    fin: date | None = None,
) -> tuple[list[date], int]:
    """Run a day-level copy or move.

    Returns:
        The dates that received rows and the number of rows per date.
    """
    if operacion not in OPERACIONES_DIA:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Operación '{operacion}' no válida. Valores permitidos: {OPERACIONES_DIA}",
        )
    with sesion.lock:
        grid = sesion.grid
        try:
            filas = len(grid.filas_de(origen))
            if operacion in ("COPIAR_DIA", "MOVER_DIA"):
                if destino is None:
                    raise ValueError("Debe indicar la fecha destino.")
                funcion = replicacion.copiar_dia if operacion == "COPIAR_DIA" else replicacion.mover_dia
                copiadas = funcion(grid, origen, destino)
                destinos = [destino] if copiadas else []
            else:
                if inicio is None or fin is None:
                    raise ValueError("Debe indicar el inicio y el fin del rango.")
                funcion = replicacion.copiar_a_rango if operacion == "COPIAR_RANGO" else replicacion.mover_a_rango
                destinos = funcion(grid, origen, inicio, fin)
        except ValueError as exc:
            raise _rechazar(exc) from exc

    logger.debug("replicar_dia: session %s %s %s -> %d dates", sesion.id, operacion, origen, len(destinos))
    return destinos, filas if destinos else 0


def replicar_fila(
    sesion: SesionPlan, operacion: str, origen: date, ui_id: str, inicio: date, fin: date
) -> list[date]:
    if operacion not in OPERACIONES_FILA:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Operación '{operacion}' no válida. Valores permitidos: {OPERACIONES_FILA}",
        )
    funcion = replicacion.copiar_fila_a_rango if operacion == "COPIAR" else replicacion.mover_fila_a_rango
    with sesion.lock:
        try:
            return funcion(sesion.grid, origen, ui_id, inicio, fin)
        except ValueError as exc:
            raise _rechazar(exc) from exc


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def fila_a_respuesta(fila: FilaPlan) -> FilaResponse:
    return FilaResponse(
        ui_id=fila.ui_id,
        fecha=fila.fecha,
        linea=fila.linea,
        lote_id=fila.lote_id,
        red_id=fila.red_id,
        sector_id=fila.sector_id,
        subgrupo_labor=fila.subgrupo_labor,
        codigo_labor=fila.codigo_labor,
        ratio=fila.ratio,
        ha_prog=fila.ha_prog,
        modo_jornales=fila.modo_jornales,
        jornales_prog=texto_jornales(fila),
        jornales_valor=valor_jornales(fila),
        obs=fila.obs,
        obs_open=fila.obs_open,
        vacia=es_fila_vacia(fila),
        valida=es_fila_valida(fila),
    )


def a_respuesta(sesion: SesionPlan) -> SesionResponse:
    with sesion.lock:
        grid = sesion.grid
        por_dia = grid.totales_por_dia()
        ha, jornales = grid.totales()
        return SesionResponse(
            sesion_id=sesion.id,
            plan_id=sesion.plan_id,
            anio=grid.anio,
            mes=grid.mes,
            depto_id=sesion.depto_id,
            etiqueta_departamento=sesion.etiqueta,
            ha_total=ha,
            jornales_total=jornales,
            dias=[
                DiaResponse(
                    fecha=d,
                    ha=por_dia[d][0],
                    jornales=por_dia[d][1],
                    filas=[fila_a_respuesta(f) for f in grid.filas_de(d)],
                )
                for d in grid.dias
            ],
        )
