from prometheus_client import CONTENT_TYPE_LATEST


def test_metrics_exposition(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "# HELP app_requests_total Total number of API requests" in resp.text
    assert "# TYPE app_requests_total counter" in resp.text
    assert "app_requests_total 0.0" in resp.text


def test_metrics_include_runtime_collectors(client):
    body = client.get("/metrics").text
    assert "python_info" in body
    assert "python_gc_objects_collected_total" in body


def test_metrics_failure_returns_500_without_crashing(app, client, monkeypatch):
    def broken():
        raise RuntimeError("collector exploded")

    monkeypatch.setattr(app.state.metrics, "render", broken)
    resp = client.get("/metrics")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "metrics collection failed"
    assert app.state.metrics.registry.get_sample_value("app_errors_total", {"type": "metrics"}) == 1

    monkeypatch.undo()
    assert client.get("/metrics").status_code == 200


def test_health_reports_uninitialized_backends(client, request_count):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["services"] == {"database": "uninitialized", "media": "uninitialized", "cache": "uninitialized"}
    assert request_count() == 0
