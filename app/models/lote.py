"""Lote, Red and Sector models — the three nested location levels."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class Lote(Base):
    """Field ("lote"), the largest location unit.

    Attributes:
        lote_id: Field identifier, e.g. "L05".
        cultivo: Crop planted on the field.
        fundo: Estate the field belongs to.
        ha_total: Total area in hectares.
        activo: Soft-delete / active flag.
    """

    __tablename__ = "lotes"

    lote_id = Column(String(40), primary_key=True)
    cultivo = Column(String(80), nullable=True)
    fundo = Column(String(80), nullable=True)
    ha_total = Column(Numeric(12, 4), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    redes = relationship("Red", back_populates="lote", lazy="select")


class Red(Base):
    """Irrigation network ("red"), a named subdivision of exactly one Lote.

    Attributes:
        id: Surrogate primary key.
        lote_id: FK to Lote.
        red_id: Network identifier, unique within its Lote.
        red_ref: Optional external reference code.
    """

    __tablename__ = "redes"
    __table_args__ = (UniqueConstraint("lote_id", "red_id", name="uq_redes_lote_red"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    lote_id = Column(String(40), ForeignKey("lotes.lote_id"), nullable=False)
    red_id = Column(String(60), nullable=False)
    red_ref = Column(String(80), nullable=True)

    lote = relationship("Lote", back_populates="redes", lazy="select")


class Sector(Base):
    """Sector of one (Lote, Red) pair; its area seeds an entry's ha_prog.

    Attributes:
        id: Surrogate primary key.
        sector_id: Sector identifier, e.g. "L05_ARA_R01_S02".
        lote_id: Owning field.
        red_id: Owning network within the field.
        ha: Sector area in hectares.
        variedad: Crop variety planted on the sector.
    """

    __tablename__ = "sectores"
    __table_args__ = (
        UniqueConstraint("lote_id", "red_id", "sector_id", name="uq_sectores_lote_red_sector"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    sector_id = Column(String(80), nullable=False)
    lote_id = Column(String(40), ForeignKey("lotes.lote_id"), nullable=False)
    red_id = Column(String(60), nullable=False)
    ha = Column(Numeric(12, 4), nullable=True)
    variedad = Column(String(80), nullable=True)
