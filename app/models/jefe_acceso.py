"""JefeAcceso model — grants a non-admin user access to one department."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class JefeAcceso(Base):
    """Department access grant keyed by the user's email.

    Attributes:
        id: Primary key.
        email: Lower-cased email of the granted user.
        depto_id: FK to Departamento.
        rol: Role granted on the department (informative).
        activo: Whether the grant is in force.
    """

    __tablename__ = "jefes_acceso"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(200), nullable=False, index=True)
    depto_id = Column(Integer, ForeignKey("deptos.id"), nullable=False)
    rol = Column(String(50), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    departamento = relationship("Departamento", back_populates="accesos", lazy="select")
