"""Plan and PlanDetalle models — the persisted monthly labor schedule."""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Plan(Base):
    """Monthly labor plan of one department.

    Exactly one row exists per (anio, mes, depto_id). It is created on
    first access with estado ``BORRADOR`` and never deleted.

    Attributes:
        id: Primary key.
        anio: Calendar year.
        mes: Month number (1 = January, 12 = December).
        depto_id: FK to Departamento.
        jefe: Supervisor name copied from the department at creation.
        estado: Lifecycle state; see ``constants.ESTADOS_PLAN``.
        created_at: Row creation timestamp.
    """

    __tablename__ = "planes"
    __table_args__ = (UniqueConstraint("anio", "mes", "depto_id", name="uq_planes_periodo_depto"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    anio = Column(Integer, nullable=False)
    mes = Column(Integer, nullable=False)  # 1–12
    depto_id = Column(Integer, ForeignKey("deptos.id"), nullable=False)
    jefe = Column(String(200), nullable=True)
    estado = Column(String(30), nullable=False, default="BORRADOR")
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    departamento = relationship("Departamento", back_populates="planes", lazy="select")
    detalles = relationship(
        "PlanDetalle",
        back_populates="plan",
        lazy="select",
        cascade="all, delete-orphan",
    )
    versiones = relationship("PlanVersion", back_populates="plan", lazy="select")


class PlanDetalle(Base):
    """One persisted grid entry of a plan.

    The whole set for a plan is replaced on every save; rows are never
    updated in place.

    Attributes:
        id: Primary key.
        plan_id: FK to Plan.
        fecha: Calendar date within the plan's month.
        linea: 1-based position within the date.
        lote_id / red_id / sector_id: Optional location references.
        codigo_labor: Labor code (required for non-empty rows).
        ratio: Jornales per hectare.
        ha_prog: Programmed area in hectares.
        jornales_prog: Programmed effort in labor-days.
        obs: Free-text note.
    """

    __tablename__ = "plan_detalle"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("planes.id"), nullable=False, index=True)
    fecha = Column(Date, nullable=False)
    linea = Column(Integer, nullable=False)
    lote_id = Column(String(40), nullable=True)
    red_id = Column(String(60), nullable=True)
    sector_id = Column(String(80), nullable=True)
    codigo_labor = Column(Integer, nullable=True)
    ratio = Column(Numeric(12, 4), default=0, nullable=False)
    ha_prog = Column(Numeric(12, 4), default=0, nullable=False)
    jornales_prog = Column(Numeric(12, 2), default=0, nullable=False)
    obs = Column(Text, nullable=True)

    plan = relationship("Plan", back_populates="detalles", lazy="select")
