"""PlanVersion and PlanDetalleVersion models — append-only plan snapshots."""

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


class PlanVersion(Base):
    """Immutable header of a point-in-time copy of a plan's persisted detail.

    Attributes:
        id: Primary key.
        plan_id: FK to Plan.
        depto_id / anio / mes: Denormalised plan period for listing.
        secuencia: 1-based sequence number within the plan.
        created_at: Snapshot timestamp.
        created_by: Identity (email) of the user who took the snapshot.
        comentario: Optional free-text comment.
    """

    __tablename__ = "plan_versiones"
    __table_args__ = (UniqueConstraint("plan_id", "secuencia", name="uq_plan_versiones_secuencia"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("planes.id"), nullable=False, index=True)
    depto_id = Column(Integer, nullable=False)
    anio = Column(Integer, nullable=False)
    mes = Column(Integer, nullable=False)
    secuencia = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    created_by = Column(String(200), nullable=True)
    comentario = Column(Text, nullable=True)

    plan = relationship("Plan", back_populates="versiones", lazy="select")
    detalles = relationship("PlanDetalleVersion", back_populates="version", lazy="select")


class PlanDetalleVersion(Base):
    """Verbatim copy of one ``PlanDetalle`` row scoped to a version."""

    __tablename__ = "plan_detalle_versiones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version_id = Column(Integer, ForeignKey("plan_versiones.id"), nullable=False, index=True)
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

    version = relationship("PlanVersion", back_populates="detalles", lazy="select")
