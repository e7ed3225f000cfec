def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_api_v1_voice(client):
    """Voice router is mounted: the IVR menu answers with TwiML."""
    response = client.post("/api/v1/voice/ivr-menu")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")


def test_api_v1_calls(client):
    """Calls router is mounted: unknown calls return 404."""
    response = client.get("/api/v1/calls/CA-nonexistent")
    assert response.status_code == 404


def test_api_v1_recordings(client):
    response = client.delete("/api/v1/recordings/RE-nonexistent")
    assert response.status_code == 404


def test_api_v1_messages(client):
    """Messages router is mounted: a missing body is a validation error."""
    response = client.post("/api/v1/messages", json={})
    assert response.status_code == 422
