import pytest
from fastapi.testclient import TestClient

from conftest import NODE, VOTE, vote_row
from valtrust.api.app import create_app
from valtrust.config import DashboardConfig, HistoryConfig, SourcesConfig
from valtrust.history.kv import InMemoryKeyValueStore
from valtrust.history.store import HistoryStore

RPC_A = "https://rpc-a.example"
RPC_B = "https://rpc-b.example"

CONFIG = DashboardConfig(
    validator_vote=VOTE,
    validator_name="Tester",
    sources=SourcesConfig(
        rpc_urls=(RPC_A, RPC_B),
        jito_url="https://jito.example/validators",
        stakewiz_url="https://stakewiz.example/validator/{vote}",
        trillium_url="https://trillium.example/rewards",
        timeout_s=2.0,
    ),
    history=HistoryConfig(path=None),
)


def _rpc_payload(rows):
    return {"jsonrpc": "2.0", "id": 1, "result": {"current": rows, "delinquent": []}}


@pytest.fixture
def client():
    app = create_app(config=CONFIG, history=HistoryStore(InMemoryKeyValueStore()))
    return TestClient(app)


def _serve_all(upstream):
    upstream.on("POST", RPC_A, _rpc_payload([vote_row()]))
    upstream.on("GET", CONFIG.sources.jito_url, [{"vote_account": VOTE}])
    upstream.on("GET", CONFIG.sources.stakewiz_url.format(vote=VOTE), {"total_apy": 7.0})
    upstream.on(
        "GET",
        CONFIG.sources.trillium_url,
        [{"vote_account_pubkey": VOTE, "average_delegator_total_apy": 7.5, "stake_pools": {"Jito": 1000}}],
    )


def test_healthz(client):
    r = client.get("/healthz")

    assert r.status_code == 200
    assert r.json()["ok"] is True


@pytest.mark.parametrize("path", ["/api/jito", "/api/rpc", "/api/ratings", "/api/jito?vote=%20"])
def test_missing_vote_is_400(client, path):
    r = client.get(path)

    assert r.status_code == 400
    assert r.json()["detail"] == "Missing vote param"


def test_jito_proxy_match_sets_cache_header(client, upstream):
    upstream.on("GET", CONFIG.sources.jito_url, {"validators": [{"vote_identity": VOTE}, {"vote_identity": "x"}]})

    r = client.get("/api/jito", params={"vote": VOTE})

    assert r.status_code == 200
    assert r.json() == {"jito": True, "matched": VOTE, "count": 2, "error": None}
    assert r.headers["cache-control"] == "s-maxage=60, stale-while-revalidate=300"


def test_jito_proxy_not_listed(client, upstream):
    upstream.on("GET", CONFIG.sources.jito_url, [{"vote_identity": "x"}])

    body = client.get("/api/jito", params={"vote": VOTE}).json()

    assert body["jito"] is False
    assert body["matched"] is None
    assert body["count"] == 1


def test_jito_proxy_upstream_failure_is_200_with_error(client, upstream):
    upstream.fail("GET", CONFIG.sources.jito_url)

    r = client.get("/api/jito", params={"vote": VOTE})

    assert r.status_code == 200
    assert r.json() == {"jito": False, "matched": None, "count": 0, "error": "proxy_error"}


def test_rpc_proxy_found(client, upstream):
    upstream.fail("POST", RPC_A)
    upstream.on("POST", RPC_B, _rpc_payload([vote_row(commission=5)]))

    body = client.get("/api/rpc", params={"vote": VOTE}).json()

    assert body["ok"] is True
    assert body["data"]["vote_pubkey"] == VOTE
    assert body["data"]["node_pubkey"] == NODE
    assert body["data"]["commission"] == 5
    assert body["data"]["status"] == "healthy"
    assert body["data"]["uptime_proxy"] == 100.0


def test_rpc_proxy_not_found(client, upstream):
    upstream.on("POST", RPC_A, _rpc_payload([]))

    r = client.get("/api/rpc", params={"vote": VOTE})

    assert r.status_code == 200
    assert r.json()["ok"] is False
    assert r.json()["data"] is None


def test_rpc_proxy_all_failing_is_502(client, upstream):
    upstream.fail("POST", RPC_A)
    upstream.fail("POST", RPC_B)

    r = client.get("/api/rpc", params={"vote": VOTE})

    assert r.status_code == 502


def test_ratings_endpoint(client, upstream):
    _serve_all(upstream)

    r = client.get("/api/ratings", params={"vote": VOTE})

    assert r.status_code == 200
    assert r.headers["cache-control"] == "no-store"
    body = r.json()
    assert body["vote"] == VOTE
    assert body["derived"]["apy_median"] == 7.25
    assert body["pools"]["stake_pools"] == [{"name": "Jito", "sol": 1000.0}]
    assert body["sources"]["trillium"]["data"]["apy"] == 7.5


def test_dashboard_endpoint(client, upstream):
    _serve_all(upstream)

    r = client.get("/api/dashboard", params={"name": "Alice", "page_url": "https://me.github.io/dash/"})

    assert r.status_code == 200
    body = r.json()
    assert body["validator"]["vote"] == VOTE
    assert body["validator"]["name_from_url"] == "Alice"
    assert body["snapshot"]["status"] == "healthy"
    assert len(body["history"]) == 1
    assert body["stability"]["score"] == 100
    assert body["stability"]["label"] == "Strong"
    assert body["share_url"] == f"https://me.github.io/dash/#vote={VOTE}&name=Alice"


def test_cors_preflight(client):
    r = client.options(
        "/api/jito",
        headers={"Origin": "https://elsewhere.example", "Access-Control-Request-Method": "GET"},
    )

    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    assert "GET" in r.headers["access-control-allow-methods"]
