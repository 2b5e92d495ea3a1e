import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.core.errors import StoreError, install_error_handlers


def build_app() -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("db password is hunter2")

    @app.get("/store")
    def store():
        try:
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))
        except OperationalError as exc:
            raise StoreError() from exc

    return app


def test_unhandled_error_is_opaque_and_logged_with_traceback(caplog):
    client = TestClient(build_app(), raise_server_exceptions=False)

    with caplog.at_level(logging.ERROR, logger="app.core.errors"):
        r = client.get("/boom")

    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error"}
    assert "hunter2" not in r.text

    record = next(rec for rec in caplog.records if rec.name == "app.core.errors")
    assert record.exc_info is not None
    assert record.exc_info[0] is RuntimeError
    assert "path=/boom" in record.getMessage()


def test_store_error_is_logged_with_its_cause(caplog):
    client = TestClient(build_app())

    with caplog.at_level(logging.ERROR, logger="app.core.errors"):
        r = client.get("/store")

    assert r.status_code == 500
    assert r.json() == {"error": "Internal Server Error"}

    record = next(rec for rec in caplog.records if rec.name == "app.core.errors")
    assert record.exc_info[0] is StoreError
    assert "connection reset" in record.getMessage()
