"""
Ratings aggregation: APY figures from Stakewiz and Trillium plus stake-pool presence.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from valtrust.config import SourcesConfig
from valtrust.core.models import (
    SourceResult,
    StakePool,
    StakewizRecord,
    TrilliumRecord,
    finite_or_none,
)
from valtrust.sources.stakewiz import fetch_stakewiz
from valtrust.sources.trillium import fetch_trillium


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApyStats:
    values: Tuple[float, ...] = ()
    median: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


def apy_stats(values: Sequence[Any]) -> ApyStats:
    """Median/min/max over the finite values; all ``None`` when none remain."""
    vals = [v for v in (finite_or_none(x) for x in values) if v is not None]
    if not vals:
        return ApyStats()
    arr = np.asarray(vals, dtype=float)
    return ApyStats(
        values=tuple(vals),
        median=float(np.median(arr)),
        minimum=float(arr.min()),
        maximum=float(arr.max()),
    )


@dataclass(frozen=True)
class RatingsReport:
    vote: str
    stakewiz: SourceResult[StakewizRecord]
    trillium: SourceResult[TrilliumRecord]
    stats: ApyStats = field(default_factory=ApyStats)
    updated_at: str = ""

    @property
    def stakewiz_apy(self) -> Optional[float]:
        return self.stakewiz.data.total_apy if self.stakewiz.ok and self.stakewiz.data else None

    @property
    def trillium_apy(self) -> Optional[float]:
        return self.trillium.data.apy if self.trillium.ok and self.trillium.data else None

    @property
    def stake_pools(self) -> Optional[Tuple[StakePool, ...]]:
        if self.trillium.ok and self.trillium.data is not None:
            return self.trillium.data.stake_pools
        return None

    @property
    def pool_count(self) -> Optional[int]:
        pools = self.stake_pools
        return None if pools is None else len(pools)

    def to_payload(self) -> Dict[str, Any]:
        trillium = self.trillium.data if self.trillium.ok else None
        pools = self.stake_pools
        return {
            "vote": self.vote,
            "sources": {
                "stakewiz": self.stakewiz.to_payload(),
                "trillium": self.trillium.to_payload(),
            },
            "pools": {
                "total_from_stake_pools": trillium.total_from_stake_pools if trillium else None,
                "total_not_from_stake_pools": trillium.total_not_from_stake_pools if trillium else None,
                "stake_pools": None if pools is None else [{"name": p.name, "sol": p.sol} for p in pools],
            },
            "derived": {
                "apy_values": list(self.stats.values),
                "apy_median": self.stats.median,
                "apy_min": self.stats.minimum,
                "apy_max": self.stats.maximum,
            },
            "meta": {"updated_at": self.updated_at},
        }


def _settled(outcome: Any, source: str) -> SourceResult:
    if isinstance(outcome, SourceResult):
        return outcome
    logger.warning("%s fetch raised: %r", source, outcome)
    return SourceResult.failed(str(outcome) or type(outcome).__name__)


async def collect_ratings(vote: str, sources: SourcesConfig) -> RatingsReport:
    """
    Fetch all rating sources concurrently and wait for every outcome.

    One source failing never fails the report; it is carried as an error entry.
    """
    outcomes = await asyncio.gather(
        asyncio.to_thread(fetch_stakewiz, sources.stakewiz_url, vote, timeout_s=sources.timeout_s),
        asyncio.to_thread(fetch_trillium, sources.trillium_url, vote, timeout_s=sources.timeout_s),
        return_exceptions=True,
    )
    stakewiz = _settled(outcomes[0], "stakewiz")
    trillium = _settled(outcomes[1], "trillium")

    apy_values: List[float] = []
    for result, pick in ((stakewiz, "total_apy"), (trillium, "apy")):
        if result.ok and result.data is not None:
            value = finite_or_none(getattr(result.data, pick))
            if value is not None:
                apy_values.append(value)

    return RatingsReport(
        vote=vote,
        stakewiz=stakewiz,
        trillium=trillium,
        stats=apy_stats(apy_values),
        updated_at=datetime.now(timezone.utc).isoformat(),
    )
