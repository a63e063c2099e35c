"""
View helpers for the validator dashboard: URL parameters, share links,
number formatting, a text sparkline and the text rendering of a refresh.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from valtrust.core.models import finite_or_none

if TYPE_CHECKING:
    from valtrust.dashboard.service import DashboardState


SPARK_BARS = "▁▂▃▄▅▆▇█"
POOLS_SHOWN = 12


@dataclass(frozen=True)
class ValidatorRef:
    vote: str
    name: str
    vote_from_url: Optional[str] = None
    name_from_url: Optional[str] = None


def get_param(url: str, name: str) -> Optional[str]:
    """Read ``name`` from the query string, then from a query-style ``#fragment``."""
    parts = urlsplit(url or "")
    for raw in (parts.query, parts.fragment):
        values = parse_qs(raw, keep_blank_values=True).get(name)
        if values:
            return values[0]
    return None


def resolve_validator(
    default_vote: str,
    default_name: str,
    *,
    url: str = "",
    vote: Optional[str] = None,
    name: Optional[str] = None,
) -> ValidatorRef:
    """Explicit values win over URL parameters; blanks fall back to the defaults."""
    vote_raw = vote if vote is not None else get_param(url, "vote")
    name_raw = name if name is not None else get_param(url, "name")
    v = (vote_raw or "").strip()
    n = (name_raw or "").strip()
    return ValidatorRef(
        vote=v or default_vote,
        name=n or default_name,
        vote_from_url=v or None,
        name_from_url=n or None,
    )


def short_key(key: Optional[str]) -> str:
    if not key:
        return "—"
    return f"{key[:4]}…{key[-4:]}" if len(key) > 12 else key


def display_label(ref: ValidatorRef, node_pubkey: Optional[str] = None) -> str:
    if ref.name_from_url:
        return ref.name_from_url
    if node_pubkey:
        return f"node {short_key(node_pubkey)}"
    return f"vote {short_key(ref.vote)}"


def build_share_url(page_url: str, ref: ValidatorRef) -> str:
    """Shareable link; static hosts on github.io get the parameters in the fragment."""
    parts = urlsplit(page_url)
    params = {"vote": ref.vote}
    if ref.name_from_url:
        params["name"] = ref.name_from_url
    encoded = urlencode(params)
    if parts.hostname and "github.io" in parts.hostname:
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", encoded))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, encoded, ""))


def fmt_pct(value: Any) -> str:
    n = finite_or_none(value)
    return "—%" if n is None else f"{n:.2f}%"


def fmt_sol(value: Any) -> str:
    n = finite_or_none(value)
    if n is None:
        return "—"
    return f"{n:.0f}" if n >= 1000 else f"{n:.2f}"


def sparkline(values: Sequence[Any]) -> str:
    nums = [v for v in (finite_or_none(x) for x in values) if v is not None]
    if not nums:
        return ""
    lo, hi = min(nums), max(nums)
    span = (hi - lo) or 1.0
    top = len(SPARK_BARS) - 1
    return "".join(SPARK_BARS[int(round((v - lo) / span * top))] for v in nums)


def _commission_series(state: "DashboardState") -> List[float]:
    series = [s.commission for s in state.history if s.commission is not None]
    if not series and state.snapshot.commission is not None:
        series = [state.snapshot.commission]
    return [float(x) for x in series]


def render_text(state: "DashboardState") -> str:
    ref = state.validator
    live = state.snapshot
    record = state.vote_account.data if state.vote_account.ok else None
    jito_on = bool(state.jito.data and state.jito.data.jito)
    ratings = state.ratings

    lines = [
        f"Validator: {display_label(ref, record.node_pubkey if record else None)}",
        f"Vote account: {ref.vote}",
        f"Status: {live.status}",
        f"Commission: {'—' if live.commission is None else f'{live.commission}%'}",
        f"Epoch performance (proxy): {fmt_pct(live.uptime_proxy)}",
        f"Jito: {'ON' if jito_on else 'OFF'}",
    ]

    series = _commission_series(state)
    if series:
        lines.append(
            f"Commission history: {sparkline(series)}  "
            f"Min {min(series):.0f}% • Max {max(series):.0f}% • Latest {series[-1]:.0f}%"
        )

    stakewiz_ok = ratings.stakewiz.ok
    trillium_ok = ratings.trillium_apy is not None
    lines += [
        "",
        f"APY median: {fmt_pct(ratings.stats.median)}",
        f"APY Stakewiz: {fmt_pct(ratings.stakewiz_apy)}",
        f"APY Trillium: {fmt_pct(ratings.trillium_apy)}",
        f"Sources: Stakewiz {'OK' if stakewiz_ok else '—'} • Trillium {'OK' if trillium_ok else '—'}",
    ]

    trillium = ratings.trillium.data if ratings.trillium.ok else None
    pools = list(ratings.stake_pools or ())
    lines.append(f"Stake pools: {len(pools) if pools else '—'}")
    lines.append(
        f"Stake from pools: {fmt_sol(trillium.total_from_stake_pools if trillium else None)} SOL • "
        f"Not from pools: {fmt_sol(trillium.total_not_from_stake_pools if trillium else None)} SOL"
    )
    if pools:
        badges = [f"{p.name}: {fmt_sol(p.sol)} SOL" for p in pools[:POOLS_SHOWN]]
        if len(pools) > POOLS_SHOWN:
            badges.append(f"+{len(pools) - POOLS_SHOWN} more")
        lines.append("  " + " | ".join(badges))
    else:
        lines.append("  No stake pool data available for this validator (or source unavailable).")

    result = state.stability
    lines += ["", f"Stability: {result.score}/100 ({result.label})", f"  {result.tracking}"]
    for pill in result.pills:
        lines.append(f"  [{'ok' if pill.ok else '!!'}] {pill.text}")

    if state.share_url:
        lines += ["", f"Share: {state.share_url}"]
    return "\n".join(lines)
