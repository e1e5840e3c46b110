"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the message envelope returned by write operations and the error
body produced for plan-engine failures.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information (error description, hint, etc.).
    """

    message: str = Field(..., description="Resumen del resultado de la operación.")
    detail: str | None = Field(
        default=None,
        description="Información adicional (contexto de error, sugerencia, etc.).",
    )


class ErrorPlanResponse(BaseModel):
    """Body of every response produced from a plan-engine error.

    Attributes:
        detail: User-facing message.
        tipo: Error category (``CARGA``, ``VALIDACION``, ``PERSISTENCIA``,
              ``EN_CURSO``, ``FILA_NO_ENCONTRADA``).
        regla: Violated rule, for validation errors.
        filas: ``[fecha, linea]`` pairs of the offending rows.
        riesgo_perdida: Set when the stored plan was left empty.
    """

    detail: str = Field(..., description="Mensaje para el usuario.")
    tipo: str = Field(..., description="Categoría del error.")
    regla: str | None = Field(default=None, description="Regla de validación incumplida.")
    filas: list[tuple[str, int]] = Field(
        default_factory=list,
        description="Filas (fecha, línea) que incumplen la regla.",
    )
    riesgo_perdida: bool = Field(
        default=False,
        description="True si el detalle guardado quedó vacío tras un fallo de inserción.",
    )
