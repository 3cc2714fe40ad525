"""
Call monitoring: observers see every call and can never break a response.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from hello_service import create_app
from hello_service.plugins.monitoring import CallMonitor, CallRecord


def _recording_app(**overrides):
    app = create_app(overrides=overrides or None)
    records = []
    app.state.call_monitor.subscribe(records.append)
    return app, records


def test_observer_records_method_path_and_status():
    app, records = _recording_app()

    with TestClient(app) as client:
        client.get("/")
        client.get("/missing")

    assert [(r.method, r.path, r.status_code) for r in records] == [
        ("GET", "/", 200),
        ("GET", "/missing", 404),
    ]
    assert all(r.duration_ms >= 0 for r in records)
    assert not any(r.failed for r in records)


def test_handler_failure_is_observed():
    app, records = _recording_app()

    def explode():
        raise RuntimeError("boom")

    app.add_api_route("/explode", explode, methods=["GET"])

    with TestClient(app, raise_server_exceptions=False) as client:
        assert client.get("/explode").status_code == 500

    assert records[-1].path == "/explode"
    assert records[-1].status_code == 500
    assert records[-1].failed is True


def test_failing_observer_does_not_affect_response(caplog):
    app, records = _recording_app()

    def broken(record):
        raise RuntimeError("observer down")

    app.state.call_monitor.subscribe(broken)

    with caplog.at_level(logging.ERROR, logger="hello_service.plugins.monitoring"):
        with TestClient(app) as client:
            response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello World!"
    assert len(records) == 1
    assert "observer down" in caplog.text


def test_default_observer_logs_calls(caplog):
    app = create_app()

    with caplog.at_level(logging.INFO, logger="hello_service.calls"):
        with TestClient(app) as client:
            client.get("/")

    assert "200 OK: GET - /" in caplog.text


def test_observers_survive_a_lifespan_restart(caplog):
    app, records = _recording_app()

    with caplog.at_level(logging.INFO, logger="hello_service.calls"):
        for _ in range(2):
            with TestClient(app) as client:
                assert client.get("/").status_code == 200

    assert [(r.method, r.path, r.status_code) for r in records] == [("GET", "/", 200)] * 2
    assert caplog.text.count("200 OK: GET - /") == 2


def test_disabled_monitoring_installs_no_middleware():
    app, records = _recording_app(monitoring={"enabled": False})

    with TestClient(app) as client:
        assert client.get("/").status_code == 200

    assert records == []


def test_path_prefix_filters_calls():
    app, records = _recording_app(monitoring={"path_prefix": "/api"})

    with TestClient(app) as client:
        client.get("/")

    assert records == []


def test_monitor_tolerates_concurrent_notification():
    monitor = CallMonitor()
    seen = []
    monitor.subscribe(seen.append)
    record = CallRecord(method="GET", path="/", status_code=200, duration_ms=1.0)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: monitor.notify(record), range(200)))

    assert len(seen) == 200
