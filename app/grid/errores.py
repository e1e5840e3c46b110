"""Error taxonomy of the plan engine.

Every error carries a user-facing Spanish message and the HTTP status the
API layer maps it to (see the handler registered in ``app.main``). None of
them is fatal: the editing session stays usable after any of them.
"""

from __future__ import annotations


class PlanError(Exception):
    """Base class for all recoverable plan errors.

    Attributes:
        mensaje: Human-readable description shown to the user.
        status_code: HTTP status used when the error reaches the API.
        tipo: Stable machine-readable error category.
    """

    status_code: int = 400
    tipo: str = "PLAN"

    def __init__(self, mensaje: str) -> None:
        super().__init__(mensaje)
        self.mensaje = mensaje


class CargaError(PlanError):
    """A catalogue, plan, detail or version read failed."""

    status_code = 503
    tipo = "CARGA"


class ValidacionError(PlanError):
    """A non-empty row is incomplete; the save was not attempted.

    Attributes:
        regla: Identifier of the violated rule.
        filas: ``(fecha, linea)`` pairs of the offending rows.
    """

    status_code = 422
    tipo = "VALIDACION"

    def __init__(self, mensaje: str, regla: str, filas: list[tuple[str, int]] | None = None) -> None:
        super().__init__(mensaje)
        self.regla = regla
        self.filas = filas or []


class PersistenciaError(PlanError):
    """A write to the plan store failed.

    ``riesgo_perdida`` is set when the previous detail set was already
    deleted but the new one could not be inserted: the plan is empty on
    the server until the user saves again.
    """

    status_code = 500
    tipo = "PERSISTENCIA"

    def __init__(self, mensaje: str, riesgo_perdida: bool = False) -> None:
        super().__init__(mensaje)
        self.riesgo_perdida = riesgo_perdida


class OperacionEnCursoError(PlanError):
    """A save or snapshot is already running; the new trigger was dropped."""

    status_code = 409
    tipo = "EN_CURSO"


class FilaNoEncontradaError(PlanError):
    """The addressed row does not exist on the given date."""

    status_code = 404
    tipo = "FILA_NO_ENCONTRADA"
