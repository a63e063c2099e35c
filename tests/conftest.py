import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

# Ensure repo root is on sys.path so `import valtrust` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from valtrust.core.models import ObservationSnapshot  # noqa: E402

VOTE = "Vote111111111111111111111111111111111111111"
NODE = "Node111111111111111111111111111111111111111"


class _Resp:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeUpstream:
    """Routes fake GET/POST calls by URL; unknown URLs raise a connection error."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Tuple[str, str]] = []

    def on(self, method: str, url: str, payload: Any, status_code: int = 200) -> None:
        self.routes[(method, url)] = (payload, status_code)

    def fail(self, method: str, url: str, exc: Optional[Exception] = None) -> None:
        self.routes[(method, url)] = exc or requests.ConnectionError(f"connection refused: {url}")

    def _dispatch(self, method: str, url: str) -> _Resp:
        self.calls.append((method, url))
        route = self.routes.get((method, url))
        if route is None:
            raise requests.ConnectionError(f"no route for {method} {url}")
        if isinstance(route, Exception):
            raise route
        payload, status_code = route
        return _Resp(payload, status_code)

    def get(self, url: str, *, headers: Dict[str, str], timeout: float):
        return self._dispatch("GET", url)

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float):  # noqa: A002 - match requests API
        assert json["method"] == "getVoteAccounts"
        return self._dispatch("POST", url)


@pytest.fixture(autouse=True)
def _isolated_home(monkeypatch, tmp_path):
    # Default history file lives under ~; keep it inside the test tmp dir.
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()

    import valtrust.sources.http as http_mod

    monkeypatch.setattr(http_mod.requests, "get", fake.get)
    monkeypatch.setattr(http_mod.requests, "post", fake.post)
    return fake


def epoch_credits(deltas: List[int], start_epoch: int = 600) -> List[List[int]]:
    out = [[start_epoch, 1_000, 0]]
    total = 1_000
    for i, d in enumerate(deltas, start=1):
        prev = total
        total += d
        out.append([start_epoch + i, total, prev])
    return out


def vote_row(vote: str = VOTE, *, commission: int = 7, deltas: Optional[List[int]] = None) -> Dict[str, Any]:
    return {
        "votePubkey": vote,
        "nodePubkey": NODE,
        "commission": commission,
        "activatedStake": 123_000_000_000,
        "lastVote": 300_000_000,
        "epochVoteAccount": True,
        "epochCredits": epoch_credits(deltas or [400_000] * 5),
    }


def snap(ts: float, status: str = "healthy", **kw: Any) -> ObservationSnapshot:
    return ObservationSnapshot(timestamp=ts, status=status, **kw)
