"""
tests/test_api.py — End-to-end HTTP flows through the FastAPI app.
"""

API = "/api/plan-mensual"
VALIDA = {"codigo_labor": 1001, "ha_prog": "2", "modo_jornales": "AUTO"}


def _abrir(client, headers, depto_id, anio=2025, mes=3):
    resp = client.post(f"{API}/sesiones", json={"anio": anio, "mes": mes, "depto_id": depto_id}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _agregar(client, headers, sid, fecha="2025-03-01", cambios=None):
    resp = client.post(f"{API}/sesiones/{sid}/dias/{fecha}/filas", headers=headers)
    assert resp.status_code == 201, resp.text
    fila = resp.json()
    if cambios:
        resp = client.patch(f"{API}/sesiones/{sid}/dias/{fecha}/filas/{fila['ui_id']}", json=cambios, headers=headers)
        assert resp.status_code == 200, resp.text
        fila = resp.json()
    return fila


# ---------------------------------------------------------------------------
# Health and auth
# ---------------------------------------------------------------------------


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_login_with_username_or_email(client, datos):
    resp = client.post("/api/auth/login", data={"username": "lparedes", "password": "jefe1234"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["rol"] == "JEFE"

    resp = client.post("/api/auth/login", data={"username": "ADMIN@jornales.local", "password": "Admin123!"})
    assert resp.status_code == 200


def test_login_rejects_bad_password(client, datos):
    resp = client.post("/api/auth/login", data={"username": "lparedes", "password": "otra"})
    assert resp.status_code == 401


def test_routes_require_token(client, datos):
    assert client.get("/api/catalogos/departamentos").status_code == 401


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


def test_department_options_per_role(client, datos, admin_headers, jefe_headers):
    sanidad_id = datos.sanidad.id

    jefe = client.get("/api/catalogos/departamentos", headers=jefe_headers).json()
    assert [d["id"] for d in jefe] == [sanidad_id]
    assert jefe[0]["etiqueta"] == "SANIDAD - PALTO"

    admin = client.get("/api/catalogos/departamentos", headers=admin_headers).json()
    assert [d["departamento"] for d in admin] == ["RIEGO", "SANIDAD"]


def test_department_catalogue(client, datos, jefe_headers):
    resp = client.get(f"/api/catalogos/departamentos/{datos.sanidad.id}", headers=jefe_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [lab["codigo"] for lab in body["labores"]] == [1001, 1003]
    assert body["subgrupos"] == ["EVALUACION", "FUMIGACION"]
    assert [r["red_id"] for r in body["lotes"][0]["redes"]] == ["R01", "R02"]

    resp = client.get(f"/api/catalogos/departamentos/{datos.riego.id}", headers=jefe_headers)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Plan editing
# ---------------------------------------------------------------------------


def test_full_plan_flow(client, datos, jefe_headers):
    sanidad_id = datos.sanidad.id
    sesion = _abrir(client, jefe_headers, sanidad_id)
    sid, plan_id = sesion["sesion_id"], sesion["plan_id"]
    assert len(sesion["dias"]) == 31

    fila = _agregar(client, jefe_headers, sid, cambios=VALIDA)
    assert fila["jornales_prog"] == "3"
    assert fila["modo_jornales"] == "AUTO"
    assert fila["subgrupo_labor"] == "FUMIGACION"
    assert fila["valida"] is True

    resp = client.post(f"{API}/sesiones/{sid}/guardar", headers=jefe_headers)
    assert resp.json() == {"guardadas": 1, "message": "1 registro(s) guardado(s)"}

    totales = client.get(f"{API}/sesiones/{sid}/totales", headers=jefe_headers).json()
    assert (totales["ha"], totales["jornales"]) == (2.0, 3.0)

    resp = client.post(f"/api/plan-versiones/planes/{plan_id}", json={"comentario": "cierre"}, headers=jefe_headers)
    assert resp.status_code == 201
    version = resp.json()
    assert (version["secuencia"], version["filas"]) == (1, 1)
    assert version["created_by"] == "lparedes@jornales.local"

    listado = client.get(f"/api/plan-versiones/planes/{plan_id}", headers=jefe_headers).json()
    assert listado["seleccionada_id"] == version["id"]

    por_periodo = client.get(
        "/api/plan-versiones/periodo",
        params={"anio": 2025, "mes": 3, "depto_id": sanidad_id},
        headers=jefe_headers,
    ).json()
    assert [v["id"] for v in por_periodo["versiones"]] == [version["id"]]

    detalle = client.get(f"/api/plan-versiones/{version['id']}", headers=jefe_headers).json()
    assert detalle["jornales_total"] == 3.0
    assert detalle["filas"][0]["labor"] == "Aplicación foliar"

    export = client.get(f"{API}/sesiones/{sid}/exportacion", headers=jefe_headers).json()
    assert len(export) == 1
    assert export[0]["departamento"] == "SANIDAD"
    assert export[0]["jornales_prog"] == 3.0

    excel = client.get(f"/api/exportar/plan-mensual/{sid}/excel", headers=jefe_headers)
    assert excel.status_code == 200
    assert excel.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert excel.content[:2] == b"PK"

    excel = client.get(f"/api/exportar/plan-versiones/{version['id']}/excel", headers=jefe_headers)
    assert excel.status_code == 200
    assert f"version_2025_03_{version['id']}.xlsx" in excel.headers["content-disposition"]


def test_nothing_to_save(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    _agregar(client, jefe_headers, sid)

    resp = client.post(f"{API}/sesiones/{sid}/guardar", headers=jefe_headers)
    assert resp.json() == {"guardadas": 0, "message": "No hay cambios para guardar"}


def test_incomplete_row_blocks_save(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    _agregar(client, jefe_headers, sid, cambios={"codigo_labor": 1001})

    resp = client.post(f"{API}/sesiones/{sid}/guardar", headers=jefe_headers)

    assert resp.status_code == 422
    body = resp.json()
    assert body["tipo"] == "VALIDACION"
    assert body["regla"] == "LABOR_Y_JORNALES"
    assert body["filas"] == [["2025-03-01", 1]]


def test_edit_errors(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    fila = _agregar(client, jefe_headers, sid, cambios=VALIDA)
    url = f"{API}/sesiones/{sid}/dias/2025-03-01/filas"

    resp = client.patch(f"{url}/{fila['ui_id']}", json={"jornales_prog": "5"}, headers=jefe_headers)
    assert resp.status_code == 422

    resp = client.patch(f"{url}/no-existe", json={"obs": "x"}, headers=jefe_headers)
    assert resp.status_code == 404
    assert resp.json()["tipo"] == "FILA_NO_ENCONTRADA"

    resp = client.post(f"{API}/sesiones/{sid}/dias/2025-04-01/filas", headers=jefe_headers)
    assert resp.status_code == 422


def test_manual_mode_keeps_typed_effort(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    fila = _agregar(client, jefe_headers, sid, cambios=VALIDA)
    url = f"{API}/sesiones/{sid}/dias/2025-03-01/filas/{fila['ui_id']}"

    fila = client.patch(url, json={"modo_jornales": "MANUAL"}, headers=jefe_headers).json()
    assert fila["jornales_prog"] == "3"
    fila = client.patch(url, json={"jornales_prog": "7.5", "ha_prog": "10"}, headers=jefe_headers).json()
    assert fila["jornales_prog"] == "7.5"
    assert fila["jornales_valor"] == 7.5


def test_row_duplicate_and_delete(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    fila = _agregar(client, jefe_headers, sid, cambios={"obs": "revisar", "obs_open": True})
    url = f"{API}/sesiones/{sid}/dias/2025-03-01/filas"

    copia = client.post(f"{url}/{fila['ui_id']}/duplicar", headers=jefe_headers).json()
    assert copia["linea"] == 2
    assert copia["obs_open"] is False

    assert client.delete(f"{url}/{fila['ui_id']}", headers=jefe_headers).status_code == 200
    dia = client.get(f"{API}/sesiones/{sid}", headers=jefe_headers).json()["dias"][0]
    assert [(f["ui_id"], f["linea"]) for f in dia["filas"]] == [(copia["ui_id"], 1)]


def test_replication_endpoints(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    fila = _agregar(client, jefe_headers, sid, cambios=VALIDA)

    resp = client.post(
        f"{API}/sesiones/{sid}/replicar",
        json={"operacion": "COPIAR_RANGO", "origen": "2025-03-01", "inicio": "2025-03-05", "fin": "2025-03-03"},
        headers=jefe_headers,
    )
    assert resp.json() == {"destinos": ["2025-03-03", "2025-03-04", "2025-03-05"], "filas": 1}

    resp = client.post(
        f"{API}/sesiones/{sid}/dias/2025-03-01/filas/{fila['ui_id']}/replicar",
        json={"operacion": "MOVER", "inicio": "2025-03-10", "fin": "2025-03-10"},
        headers=jefe_headers,
    )
    assert resp.json() == {"destinos": ["2025-03-10"], "filas": 1}

    dias = client.get(f"{API}/sesiones/{sid}", headers=jefe_headers).json()["dias"]
    assert dias[0]["filas"] == []
    assert dias[1]["filas"] == []
    assert len(dias[9]["filas"]) == 1
    assert client.get(f"{API}/sesiones/{sid}/totales", headers=jefe_headers).json()["jornales"] == 12.0


def test_calendar_view(client, datos, jefe_headers):
    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    _agregar(client, jefe_headers, sid, cambios=VALIDA)

    body = client.get(f"{API}/sesiones/{sid}/calendario", headers=jefe_headers).json()

    assert len(body["semanas"]) == 6
    assert body["semanas"][0][:5] == [None] * 5
    assert body["semanas"][0][5] == "2025-03-01"
    assert body["resumen"][0]["cantidad"] == 1
    assert body["resumen"][0]["items"][0]["codigo_labor"] == 1001


def test_period_and_department_changes(client, datos, admin_headers):
    sid = _abrir(client, admin_headers, datos.sanidad.id)["sesion_id"]

    body = client.put(f"{API}/sesiones/{sid}/periodo", json={"anio": 2024, "mes": 2}, headers=admin_headers).json()
    assert (body["anio"], body["mes"], len(body["dias"])) == (2024, 2, 29)

    body = client.put(
        f"{API}/sesiones/{sid}/departamento", json={"depto_id": datos.riego.id}, headers=admin_headers
    ).json()
    assert body["etiqueta_departamento"] == "RIEGO - PALTO"


def test_session_access(client, datos, jefe_headers, admin_headers):
    resp = client.post(f"{API}/sesiones", json={"anio": 2025, "mes": 3, "depto_id": datos.riego.id}, headers=jefe_headers)
    assert resp.status_code == 403

    sid = _abrir(client, jefe_headers, datos.sanidad.id)["sesion_id"]
    assert client.get(f"{API}/sesiones/{sid}", headers=admin_headers).status_code == 403

    assert client.delete(f"{API}/sesiones/{sid}", headers=jefe_headers).status_code == 200
    assert client.get(f"{API}/sesiones/{sid}", headers=jefe_headers).status_code == 404
