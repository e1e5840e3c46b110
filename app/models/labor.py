"""Labor model — catalogue of field activities."""

from sqlalchemy import Boolean, Column, Integer, Numeric, String

from app.database import Base


class Labor(Base):
    """Catalogue-defined labor type with its default effort ratio.

    Attributes:
        codigo: Numeric labor code (primary key).
        nombre: Display name.
        departamento: Owning department name.
        grupo: Top-level classification, e.g. "SANIDAD".
        subgrupo: Second-level classification used to filter the selector.
        cultivo: Crop the labor applies to.
        um: Unit of measure.
        ratio_default: Jornales per hectare seeded into new entries.
        activo: Soft-delete / active flag.
    """

    __tablename__ = "labores"

    codigo = Column(Integer, primary_key=True, autoincrement=False)
    nombre = Column(String(200), nullable=False)
    departamento = Column(String(120), nullable=True)
    grupo = Column(String(120), nullable=True)
    subgrupo = Column(String(120), nullable=True)
    cultivo = Column(String(80), nullable=True)
    um = Column(String(20), nullable=True)
    ratio_default = Column(Numeric(12, 4), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)
