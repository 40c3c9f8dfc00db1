from fastapi.testclient import TestClient

from canva_bridge.api.main import app


def test_initial_balance() -> None:
    c = TestClient(app)
    r = c.get('/api/credits')
    assert r.status_code == 200
    assert r.json() == {"credits": 10}


def test_purchase_adds_bundle() -> None:
    c = TestClient(app)

    r = c.post('/api/purchase-credits')
    assert r.status_code == 200
    assert r.json()["credits"] == 20

    r = c.post('/api/purchase-credits')
    assert r.json()["credits"] == 30
    assert c.get('/api/credits').json()["credits"] == 30


def test_purchase_from_zero(registry) -> None:
    registry.ledger._balance = 0
    c = TestClient(app)
    r = c.post('/api/purchase-credits')
    assert r.json()["credits"] == 10


def test_ledger_lists_newest_first() -> None:
    c = TestClient(app)
    c.post('/api/purchase-credits')
    c.post('/api/purchase-credits')

    r = c.get('/api/credits/ledger', params={"limit": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["credits"] == 30
    assert len(body["entries"]) == 1
    entry = body["entries"][0]
    assert entry["type"] == "purchase"
    assert entry["amount"] == 10
    assert entry["balance_after"] == 30


def test_ledger_limit_validation() -> None:
    c = TestClient(app)
    r = c.get('/api/credits/ledger', params={"limit": 0})
    assert r.status_code == 400
