from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.main import app

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    from app.core.exceptions import ConflictError
    raise ConflictError(message="PAN card already registered")


@app.get("/test-crash")
def trigger_crash():
    raise RuntimeError("boom")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "HTTP_ERROR"
    assert "message" in data


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["message"].startswith("price:")
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "CONFLICT"
    assert data["message"] == "PAN card already registered"


def test_unhandled_exception_is_500():
    crash_client = TestClient(app, raise_server_exceptions=False)
    response = crash_client.get("/test-crash")
    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"


def test_liveness():
    assert client.get("/live").json() == {"status": "alive"}
