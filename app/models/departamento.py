"""Departamento model — organisational scope of a monthly labor plan."""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class Departamento(Base):
    """Department run by a jefe for one crop on one estate.

    Two rows sharing the same (departamento, cultivo) pair are presented as a
    single selectable option; see ``catalogo_service.deduplicar_departamentos``.

    Attributes:
        id: Primary key.
        departamento: Department name, e.g. "SANIDAD".
        jefe: Name of the responsible supervisor.
        cultivo: Crop handled by the department, e.g. "PALTO".
        fundo: Estate the department works on.
        activo: Soft-delete / active flag.
    """

    __tablename__ = "deptos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    departamento = Column(String(120), nullable=True)
    jefe = Column(String(200), nullable=True)
    cultivo = Column(String(80), nullable=True)
    fundo = Column(String(80), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    # Relationships
    planes = relationship("Plan", back_populates="departamento", lazy="select")
    accesos = relationship("JefeAcceso", back_populates="departamento", lazy="select")
