from fastapi.testclient import TestClient


def test_unhandled_errors_hide_details(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/boom")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "hunter2" not in r.text


def test_malformed_json_is_a_validation_error(client):
    r = client.post("/auth/register", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Validation failed"


def test_openapi_lists_auth_routes(client):
    paths = client.get("/openapi.json").json()["paths"]
    for path in ("/auth/register", "/auth/login", "/auth/verify", "/auth/logout", "/public/menu/{restaurant_id}"):
        assert path in paths
