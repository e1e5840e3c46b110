"""Seed data script for the Plan Mensual de Jornales database.

Populates the reference catalogue (departments, labors, fields, networks,
sectors) and demo users for development. The script is idempotent: each
table is skipped when it already has data.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

import os
import sys
from decimal import Decimal

# Ensure the app package is importable when running from the repository root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.models import (  # noqa: E402
    Departamento,
    JefeAcceso,
    Labor,
    Lote,
    Red,
    Sector,
    Usuario,
)
from app.utils.security import hash_password  # noqa: E402

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _dec(value: float) -> Decimal:
    """Convert float to Decimal for Numeric columns."""
    return Decimal(str(round(value, 4)))


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_departamentos(session) -> list[Departamento]:
    """Insert demo departments if the table is empty."""
    if session.query(Departamento).count() > 0:
        print("  [SKIP] Departamento — table already has data.")
        return session.query(Departamento).all()

    registros = [
        Departamento(departamento="SANIDAD", jefe="Luis Paredes", cultivo="PALTO", fundo="SAN JOSE", activo=True),
        Departamento(departamento="RIEGO", jefe="Ana Quispe", cultivo="PALTO", fundo="SAN JOSE", activo=True),
        Departamento(departamento="COSECHA", jefe="Jorge Huamán", cultivo="ARANDANO", fundo="LA HUACA", activo=True),
    ]
    session.add_all(registros)
    session.flush()
    print(f"  [OK] Departamento — {len(registros)} registros insertados.")
    return registros


def seed_labores(session) -> None:
    if session.query(Labor).count() > 0:
        print("  [SKIP] Labor — table already has data.")
        return

    # (codigo, nombre, departamento, grupo, subgrupo, cultivo, um, ratio_default)
    datos = [
        (1001, "Aplicación foliar", "SANIDAD", "SANIDAD", "FUMIGACION", "PALTO", "HA", 1.5),
        (1002, "Aplicación al suelo", "SANIDAD", "SANIDAD", "FUMIGACION", "PALTO", "HA", 1.2),
        (1003, "Evaluación de plagas", "SANIDAD", "SANIDAD", "EVALUACION", "PALTO", "HA", 0.3),
        (2001, "Limpieza de cintas", "RIEGO", "RIEGO", "MANTENIMIENTO", "PALTO", "HA", 0.8),
        (2002, "Fertirriego", "RIEGO", "RIEGO", "FERTILIZACION", "PALTO", "HA", 0.25),
        (3001, "Cosecha manual", "COSECHA", "COSECHA", "RECOLECCION", "ARANDANO", "HA", 12.0),
    ]
    session.add_all([
        Labor(
            codigo=codigo,
            nombre=nombre,
            departamento=dep,
            grupo=grupo,
            subgrupo=subgrupo,
            cultivo=cultivo,
            um=um,
            ratio_default=_dec(ratio),
            activo=True,
        )
        for codigo, nombre, dep, grupo, subgrupo, cultivo, um, ratio in datos
    ])
    session.flush()
    print(f"  [OK] Labor — {len(datos)} registros insertados.")


def seed_ubicaciones(session) -> None:
    """Insert fields, networks and sectors: two networks per field, three sectors per network."""
    if session.query(Lote).count() > 0:
        print("  [SKIP] Lote/Red/Sector — tables already have data.")
        return

    lotes = [
        ("L01", "PALTO", "SAN JOSE", 24.0),
        ("L02", "PALTO", "SAN JOSE", 18.0),
        ("L05", "ARANDANO", "LA HUACA", 12.0),
    ]
    n_redes = n_sectores = 0
    for lote_id, cultivo, fundo, ha_total in lotes:
        session.add(Lote(lote_id=lote_id, cultivo=cultivo, fundo=fundo, ha_total=_dec(ha_total), activo=True))
        sufijo = "PAL" if cultivo == "PALTO" else "ARA"
        for r in (1, 2):
            red_id = f"R{r:02d}_{lote_id}_{sufijo}"
            session.add(Red(lote_id=lote_id, red_id=red_id, red_ref=f"{red_id}:R{r:02d}"))
            n_redes += 1
            for s in (1, 2, 3):
                session.add(
                    Sector(
                        sector_id=f"{lote_id}_{sufijo}_R{r:02d}_S{s:02d}",
                        lote_id=lote_id,
                        red_id=red_id,
                        ha=_dec(ha_total / 6),
                        variedad="HASS" if cultivo == "PALTO" else "BILOXI",
                    )
                )
                n_sectores += 1
    session.flush()
    print(f"  [OK] Lote/Red/Sector — {len(lotes)}/{n_redes}/{n_sectores} registros insertados.")


def seed_usuarios(session, departamentos: list[Departamento]) -> None:
    """Insert demo users and grant the jefe access to the PALTO departments."""
    if session.query(Usuario).count() > 0:
        print("  [SKIP] Usuario — table already has data.")
        return

    session.add_all([
        Usuario(
            username="admin",
            email="admin@jornales.local",
            password_hash=hash_password("Admin123!"),
            nombre_completo="Administrador",
            rol="ADMIN",
            activo=True,
        ),
        Usuario(
            username="lparedes",
            email="lparedes@jornales.local",
            password_hash=hash_password("jefe1234"),
            nombre_completo="Luis Paredes",
            rol="JEFE",
            activo=True,
        ),
    ])
    session.add_all([
        JefeAcceso(email="lparedes@jornales.local", depto_id=dep.id, rol="JEFE", activo=True)
        for dep in departamentos
        if dep.cultivo == "PALTO"
    ])
    session.flush()
    print("  [OK] Usuario — 2 registros insertados.")


def main() -> None:
    """Run the complete seed process within a single database transaction."""
    print("=" * 60)
    print("  Plan Mensual de Jornales — Seed Data Script")
    print("=" * 60)

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        print("\n[1/4] Departamentos...")
        departamentos = seed_departamentos(session)

        print("\n[2/4] Labores...")
        seed_labores(session)

        print("\n[3/4] Lotes, redes y sectores...")
        seed_ubicaciones(session)

        print("\n[4/4] Usuarios y accesos...")
        seed_usuarios(session, departamentos)

        session.commit()
        print("\n" + "=" * 60)
        print("  Seed completado exitosamente.")
        print("=" * 60)

    except Exception as exc:
        session.rollback()
        print("\n[ERROR] Seed fallido — se hizo rollback.")
        print(f"  Detalle: {exc}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
