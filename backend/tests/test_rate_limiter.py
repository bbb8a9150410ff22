from pesaflip.core.rate_limiter import RateLimiter, rate_limiter


def test_sliding_window():
    limiter = RateLimiter(requests=2, window=60)
    assert limiter.is_allowed("ip:1", now=1000) == (True, 1)
    assert limiter.is_allowed("ip:1", now=1001) == (True, 0)
    assert limiter.is_allowed("ip:1", now=1002) == (False, 0)
    # Other clients have their own budget
    assert limiter.is_allowed("ip:2", now=1002) == (True, 1)
    # First request has left the window, the second has not
    assert limiter.is_allowed("ip:1", now=1060.5) == (True, 0)
    # Timestamps exactly one window old no longer count
    assert limiter.is_allowed("ip:1", now=1120.5) == (True, 1)


def test_middleware_returns_429(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "requests", 2)

    first = client.get("/api/auth/me")
    assert first.headers["X-RateLimit-Remaining"] == "1"
    client.get("/api/auth/me")
    blocked = client.get("/api/auth/me")

    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == str(rate_limiter.window)
    assert blocked.json()["success"] is False
    assert blocked.json()["error"]["code"] == 429


def test_health_is_exempt(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "requests", 1)
    for _ in range(3):
        assert client.get("/health").status_code == 200


def test_security_headers(client):
    response = client.get("/health")
    assert response.json()["status"] == "ok"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
