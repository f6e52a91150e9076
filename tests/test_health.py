def test_root(client):
    r = client.get("/")
    assert r.status_code == 200 and r.json()["version"] == "1.0.0"


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200 and r.json()["database"] == "ok"
    assert r.headers["x-request-id"]


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Not Found"}
