"""
Core data models used across valtrust.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, Literal, Mapping, Optional, Sequence, Tuple, TypeVar


ValidatorStatus = Literal["healthy", "delinquent", "not-found", "error"]
SourceStatus = Literal["ok", "not-found", "error"]

VALIDATOR_STATUSES: Tuple[str, ...] = ("healthy", "delinquent", "not-found", "error")

T = TypeVar("T")


def finite_or_none(value: Any) -> Optional[float]:
    """Coerce ``value`` to a finite float, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def int_or_none(value: Any) -> Optional[int]:
    n = finite_or_none(value)
    return None if n is None else int(round(n))


@dataclass(frozen=True)
class ObservationSnapshot:
    """One point-in-time measurement for a validator."""

    timestamp: float
    status: ValidatorStatus
    commission: Optional[int] = None
    uptime_proxy: Optional[float] = None
    # Stakewiz total APY.
    apy_source_a: Optional[float] = None
    # Trillium delegator total APY.
    apy_source_b: Optional[float] = None
    pool_count: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ObservationSnapshot":
        if not isinstance(payload, Mapping):
            raise ValueError("snapshot payload must be a mapping")
        ts = finite_or_none(payload.get("timestamp"))
        if ts is None:
            raise ValueError("snapshot timestamp missing or invalid")
        status = payload.get("status")
        if status not in VALIDATOR_STATUSES:
            raise ValueError(f"unknown snapshot status: {status!r}")
        return cls(
            timestamp=ts,
            status=status,
            commission=int_or_none(payload.get("commission")),
            uptime_proxy=finite_or_none(payload.get("uptime_proxy")),
            apy_source_a=finite_or_none(payload.get("apy_source_a")),
            apy_source_b=finite_or_none(payload.get("apy_source_b")),
            pool_count=int_or_none(payload.get("pool_count")),
        )

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


History = Tuple[ObservationSnapshot, ...]


@dataclass(frozen=True)
class Pill:
    """One explained pass/fail signal."""

    ok: bool
    text: str


@dataclass(frozen=True)
class StabilityResult:
    score: int
    label: str
    tracking: str
    pills: Tuple[Pill, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "tracking": self.tracking,
            "pills": [{"ok": p.ok, "text": p.text} for p in self.pills],
        }


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Tagged outcome of a single external source call."""

    status: SourceStatus
    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, data: T) -> "SourceResult[T]":
        return cls(status="ok", data=data)

    @classmethod
    def not_found(cls, data: Optional[T] = None, error: Optional[str] = None) -> "SourceResult[T]":
        return cls(status="not-found", data=data, error=error)

    @classmethod
    def failed(cls, error: str) -> "SourceResult[T]":
        return cls(status="error", error=error)

    def to_payload(self) -> Dict[str, Any]:
        data = self.data
        if data is not None and hasattr(data, "to_payload"):
            data = data.to_payload()
        return {"status": self.status, "error": self.error, "data": data}


@dataclass(frozen=True)
class VoteAccountRecord:
    """A validator row from ``getVoteAccounts``."""

    vote_pubkey: str
    node_pubkey: Optional[str]
    commission: Optional[int]
    delinquent: bool
    activated_stake: Optional[int] = None
    last_vote: Optional[int] = None
    epoch_credits: Tuple[Tuple[int, int, int], ...] = ()
    uptime_proxy: Optional[float] = None

    @property
    def status(self) -> ValidatorStatus:
        return "delinquent" if self.delinquent else "healthy"

    def to_payload(self) -> Dict[str, Any]:
        out = asdict(self)
        out["epoch_credits"] = [list(x) for x in self.epoch_credits]
        out["status"] = self.status
        return out


@dataclass(frozen=True)
class JitoRecord:
    jito: bool
    matched: Optional[str]
    count: int

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StakewizRecord:
    rank: Optional[int] = None
    is_jito: bool = False
    apy_estimate: Optional[float] = None
    staking_apy: Optional[float] = None
    jito_apy: Optional[float] = None
    total_apy: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StakePool:
    name: str
    sol: float


@dataclass(frozen=True)
class TrilliumRecord:
    average_delegator_total_apy: Optional[float] = None
    total_overall_apy: Optional[float] = None
    average_delegator_inflation_apy: Optional[float] = None
    average_delegator_mev_apy: Optional[float] = None
    average_total_inflation_apy: Optional[float] = None
    average_total_mev_apy: Optional[float] = None
    total_from_stake_pools: Optional[float] = None
    total_not_from_stake_pools: Optional[float] = None
    identity_pubkey: Optional[str] = None
    vote_account_pubkey: Optional[str] = None
    stake_pools: Tuple[StakePool, ...] = field(default_factory=tuple)

    @property
    def apy(self) -> Optional[float]:
        """Total APY for delegators, falling back to the overall figure."""
        for value in (self.average_delegator_total_apy, self.total_overall_apy):
            if value is not None:
                return value
        return None

    def to_payload(self) -> Dict[str, Any]:
        out = asdict(self)
        out["stake_pools"] = [{"name": p.name, "sol": p.sol} for p in self.stake_pools]
        out["apy"] = self.apy
        return out


def stake_pools_from_mapping(raw: Any) -> Tuple[StakePool, ...]:
    """Build a pool list sorted by staked amount, largest first."""
    if not isinstance(raw, Mapping):
        return ()
    pools = []
    for name, sol in raw.items():
        amount = finite_or_none(sol)
        if amount is None:
            continue
        pools.append(StakePool(name=str(name), sol=amount))
    pools.sort(key=lambda p: p.sol, reverse=True)
    return tuple(pools)


def snapshots_from_payloads(items: Sequence[Any]) -> History:
    """Parse persisted snapshot dicts, skipping invalid or out-of-order entries."""
    out = []
    last_ts: Optional[float] = None
    for item in items:
        try:
            snap = ObservationSnapshot.from_payload(item)
        except ValueError:
            continue
        if last_ts is not None and snap.timestamp <= last_ts:
            continue
        out.append(snap)
        last_ts = snap.timestamp
    return tuple(out)
