from fastapi.testclient import TestClient

from canva_bridge.api.main import app


def test_missing_prompt() -> None:
    c = TestClient(app)
    r = c.get('/api/queue-image-generation')
    assert r.status_code == 400
    assert r.json() == {"error": "Missing prompt parameter"}

    r = c.get('/api/queue-image-generation', params={"prompt": "   "})
    assert r.status_code == 400


def test_no_credits_rejects_without_creating_job(registry) -> None:
    registry.ledger._balance = 0
    c = TestClient(app)
    r = c.get('/api/queue-image-generation', params={"prompt": "sunset"})
    assert r.status_code == 403
    assert r.json() == {"error": "Not enough credits"}
    assert registry.counts()["processing"] == 0


def test_positive_balance_accepts_while_jobs_pending(registry) -> None:
    registry.ledger._balance = 1
    c = TestClient(app)
    assert c.get('/api/queue-image-generation', params={"prompt": "a"}).status_code == 200
    assert c.get('/api/credits').json() == {"credits": 1}

    r = c.get('/api/queue-image-generation', params={"prompt": "b"})
    assert r.status_code == 200
    assert registry.counts()["processing"] == 2


def test_status_requires_job_id() -> None:
    c = TestClient(app)
    assert c.get('/api/job-status').status_code == 400
    assert c.post('/api/job-status/cancel').status_code == 400


def test_unknown_job_is_not_found() -> None:
    c = TestClient(app)
    job_id = c.get('/api/queue-image-generation', params={"prompt": "x"}).json()["jobId"]
    c.post('/api/job-status/cancel', params={"jobId": job_id})

    r = c.get('/api/job-status', params={"jobId": "does-not-exist"})
    assert r.status_code == 404
    assert r.json() == {"error": "Job not found"}


def test_cancel_twice_is_not_found() -> None:
    c = TestClient(app)
    job_id = c.get('/api/queue-image-generation', params={"prompt": "x"}).json()["jobId"]
    assert c.post('/api/job-status/cancel', params={"jobId": job_id}).status_code == 200
    assert c.post('/api/job-status/cancel', params={"jobId": job_id}).status_code == 404
