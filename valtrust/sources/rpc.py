"""
Solana JSON-RPC vote-account lookup with a priority-ordered fallback chain.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from valtrust.core.models import SourceResult, VoteAccountRecord, finite_or_none, int_or_none
from valtrust.sources.http import SourceError, post_json


logger = logging.getLogger(__name__)

GET_VOTE_ACCOUNTS = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "getVoteAccounts",
    "params": [{"commitment": "finalized"}],
}


def _credits(entry: Any) -> float:
    # epochCredits entries are [epoch, credits, previous_credits].
    if isinstance(entry, (list, tuple)) and len(entry) > 1:
        value = finite_or_none(entry[1])
        if value is not None:
            return value
    return 0.0


def uptime_proxy(epoch_credits: Sequence[Any], window: int = 5) -> Optional[float]:
    """
    Relative vote-credit consistency over the trailing ``window`` epochs.

    Each epoch's credit delta is normalized by the largest delta in the
    window (floored at 1), then averaged and expressed as a percentage.
    Returns ``None`` when there are not enough entries to form a delta.
    """
    window = max(1, int(window))
    tail = list(epoch_credits or [])[-(window + 1):]
    deltas: List[float] = []
    for prev, cur in zip(tail, tail[1:]):
        deltas.append(max(0.0, _credits(cur) - _credits(prev)))

    recent = deltas[-window:]
    if not recent:
        return None
    max_delta = max(max(recent), 1.0)
    avg_relative = sum(d / max_delta for d in recent) / len(recent)
    return round(avg_relative * 100, 2)


def _epoch_credits(raw: Any) -> Tuple[Tuple[int, int, int], ...]:
    out = []
    for entry in raw or []:
        if not isinstance(entry, (list, tuple)) or len(entry) < 3:
            continue
        values = [int_or_none(x) for x in entry[:3]]
        if any(v is None for v in values):
            continue
        out.append((values[0], values[1], values[2]))
    return tuple(out)


def parse_vote_account(row: dict, *, delinquent: bool, window: int) -> VoteAccountRecord:
    credits = _epoch_credits(row.get("epochCredits"))
    return VoteAccountRecord(
        vote_pubkey=str(row.get("votePubkey")),
        node_pubkey=row.get("nodePubkey") or None,
        commission=int_or_none(row.get("commission")),
        delinquent=delinquent,
        activated_stake=int_or_none(row.get("activatedStake")),
        last_vote=int_or_none(row.get("lastVote")),
        epoch_credits=credits,
        uptime_proxy=uptime_proxy(credits, window),
    )


def find_vote_account(result: Any, vote: str, *, window: int = 5) -> Optional[VoteAccountRecord]:
    """Locate ``vote`` among the current and delinquent sets of a getVoteAccounts result."""
    if not isinstance(result, dict):
        raise SourceError("getVoteAccounts result is not an object")
    for bucket, delinquent in (("current", False), ("delinquent", True)):
        rows = result.get(bucket) or []
        if not isinstance(rows, list):
            continue
        for row in rows:
            if isinstance(row, dict) and row.get("votePubkey") == vote:
                return parse_vote_account(row, delinquent=delinquent, window=window)
    return None


def _call(url: str, *, timeout_s: float) -> Any:
    payload = post_json(url, GET_VOTE_ACCOUNTS, timeout_s=timeout_s)
    if not isinstance(payload, dict):
        raise SourceError(f"{url} -> unexpected RPC payload")
    if payload.get("error"):
        err = payload["error"]
        message = err.get("message") if isinstance(err, dict) else str(err)
        raise SourceError(f"{url} -> RPC error: {message}")
    return payload.get("result")


def fetch_vote_account(
    rpc_urls: Sequence[str],
    vote: str,
    *,
    timeout_s: float = 8.0,
    window: int = 5,
) -> SourceResult[VoteAccountRecord]:
    """
    Try each RPC endpoint in order; the first usable response wins.

    A well-formed response without the requested vote account is final:
    it yields ``not-found`` instead of falling through to the next endpoint.
    """
    last_error = "no RPC endpoints configured"
    for url in rpc_urls:
        try:
            result = _call(url, timeout_s=timeout_s)
            record = find_vote_account(result, vote, window=window)
        except SourceError as e:
            last_error = str(e)
            logger.warning("RPC failed: %s", last_error)
            continue

        if record is None:
            logger.warning("Vote account %s not found via RPC %s", vote, url)
            return SourceResult.not_found(error="Vote account not found")
        return SourceResult.success(record)

    logger.error("All RPCs failed for %s: %s", vote, last_error)
    return SourceResult.failed(last_error)
