"""
Shared fixtures: an in-memory SQLite database, a seeded reference
catalogue, JWT headers and a FastAPI ``TestClient``.

The environment is configured before any ``app`` import so that the
cached settings point at ``sqlite://`` (one shared in-memory connection).
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.grid.catalogo import construir_catalogo  # noqa: E402
from app.grid.modelos import RefLabor, RefLote, RefRed, RefSector  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Departamento,
    JefeAcceso,
    Labor,
    Lote,
    Red,
    Sector,
    Usuario,
)
from app.services import sesion_service, version_service  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

MARZO = [date(2025, 3, d) for d in range(1, 32)]


@pytest.fixture
def catalogo():
    """Pure catalogue: two labors, two fields, networks given out of order."""
    return construir_catalogo(
        (
            RefLabor(codigo=1001, nombre="Aplicación foliar", grupo="SANIDAD", subgrupo="FUMIGACION", um="HA", ratio_default=1.5),
            RefLabor(codigo=1003, nombre="Evaluación de plagas", grupo="SANIDAD", subgrupo="EVALUACION", um="HA", ratio_default=0.3),
        ),
        (
            RefLote(lote_id="L01", cultivo="PALTO", fundo="SAN JOSE", ha_total=24.0),
            RefLote(lote_id="L02", cultivo="PALTO", fundo="SAN JOSE", ha_total=18.0),
        ),
        (
            RefRed(lote_id="L01", red_id="R02"),
            RefRed(lote_id="L01", red_id="R01"),
            RefRed(lote_id="L02", red_id="R01"),
        ),
        (
            RefSector(lote_id="L01", red_id="R01", sector_id="S02", ha=3.5),
            RefSector(lote_id="L01", red_id="R01", sector_id="S01", ha=2.0),
            RefSector(lote_id="L02", red_id="R01", sector_id="S01", ha=1.0),
        ),
    )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        sesion_service.registro.vaciar()
        version_service._EN_CURSO.clear()


@pytest.fixture
def datos(db):
    """Reference data, an ADMIN and a JEFE granted only on SANIDAD - PALTO."""
    sanidad = Departamento(departamento="SANIDAD", jefe="Luis Paredes", cultivo="PALTO", fundo="SAN JOSE", activo=True)
    sanidad_dup = Departamento(departamento="sanidad ", jefe="Otro", cultivo="palto", fundo="SAN JOSE", activo=True)
    riego = Departamento(departamento="RIEGO", jefe="Ana Quispe", cultivo="PALTO", fundo="SAN JOSE", activo=True)
    inactivo = Departamento(departamento="COSECHA", jefe="Jorge", cultivo="ARANDANO", activo=False)
    db.add_all([sanidad, sanidad_dup, riego, inactivo])
    db.flush()

    db.add_all([
        Labor(codigo=1001, nombre="Aplicación foliar", departamento="SANIDAD", grupo="SANIDAD",
              subgrupo="FUMIGACION", cultivo="PALTO", um="HA", ratio_default=Decimal("1.5"), activo=True),
        Labor(codigo=1003, nombre="Evaluación de plagas", departamento="SANIDAD", grupo="SANIDAD",
              subgrupo="EVALUACION", cultivo="PALTO", um="HA", ratio_default=Decimal("0.3"), activo=True),
        Labor(codigo=1099, nombre="Labor retirada", departamento="SANIDAD", grupo="SANIDAD",
              subgrupo="FUMIGACION", cultivo="PALTO", um="HA", ratio_default=Decimal("1"), activo=False),
        Labor(codigo=2001, nombre="Limpieza de cintas", departamento="RIEGO", grupo="RIEGO",
              subgrupo="MANTENIMIENTO", cultivo="PALTO", um="HA", ratio_default=Decimal("0.8"), activo=True),
        Lote(lote_id="L01", cultivo="PALTO", fundo="SAN JOSE", ha_total=Decimal("24"), activo=True),
        Lote(lote_id="L05", cultivo="ARANDANO", fundo="LA HUACA", ha_total=Decimal("12"), activo=True),
    ])
    db.flush()
    db.add_all([
        Red(lote_id="L01", red_id="R02"),
        Red(lote_id="L01", red_id="R01"),
        Red(lote_id="L05", red_id="R01"),
        Sector(lote_id="L01", red_id="R01", sector_id="S02", ha=Decimal("3.5"), variedad="HASS"),
        Sector(lote_id="L01", red_id="R01", sector_id="S01", ha=Decimal("2"), variedad="HASS"),
    ])

    admin = Usuario(username="admin", email="admin@jornales.local", password_hash=hash_password("Admin123!"),
                    nombre_completo="Administrador", rol="ADMIN", activo=True)
    jefe = Usuario(username="lparedes", email="lparedes@jornales.local", password_hash=hash_password("jefe1234"),
                   nombre_completo="Luis Paredes", rol="JEFE", activo=True)
    db.add_all([admin, jefe, JefeAcceso(email="lparedes@jornales.local", depto_id=sanidad.id, rol="JEFE", activo=True)])
    db.commit()

    return SimpleNamespace(
        sanidad=sanidad, sanidad_dup=sanidad_dup, riego=riego, inactivo=inactivo, admin=admin, jefe=jefe
    )


def _headers(user: Usuario) -> dict[str, str]:
    token = create_access_token(str(user.id), {"email": user.email, "rol": user.rol})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def admin_headers(datos):
    return _headers(datos.admin)


@pytest.fixture
def jefe_headers(datos):
    return _headers(datos.jefe)
