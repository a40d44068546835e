import pytest


@pytest.mark.asyncio
async def test_liveness(api_client):
	resp = await api_client.get("/health/live")
	assert resp.status_code == 200
	assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_reports_missing_postgres(api_client):
	resp = await api_client.get("/health/ready")
	assert resp.status_code == 503
	body = resp.json()
	assert body["checks"]["redis"]["ok"] is True
	assert body["checks"]["postgres"]["ok"] is False


@pytest.mark.asyncio
async def test_metrics_exposed(api_client):
	await api_client.get("/health/live")
	resp = await api_client.get("/metrics")
	assert resp.status_code == 200
	assert "watchparty_http_requests_total" in resp.text


@pytest.mark.asyncio
async def test_request_id_echoed_in_errors(api_client):
	resp = await api_client.get("/rooms/missing", headers={"X-User-Id": "u1", "X-Request-Id": "req-123"})
	assert resp.status_code == 404
	assert resp.headers["X-Request-Id"] == "req-123"
	assert resp.json()["request_id"] == "req-123"
