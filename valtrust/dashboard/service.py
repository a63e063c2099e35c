from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from valtrust.aggregator import RatingsReport, collect_ratings
from valtrust.config import DashboardConfig
from valtrust.core.models import (
    History,
    JitoRecord,
    ObservationSnapshot,
    SourceResult,
    StabilityResult,
    ValidatorStatus,
    VoteAccountRecord,
)
from valtrust.dashboard.view import ValidatorRef, build_share_url
from valtrust.history.store import HistoryStore
from valtrust.score.stability import evaluate
from valtrust.sources.jito import lookup_jito
from valtrust.sources.rpc import fetch_vote_account


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardState:
    validator: ValidatorRef
    vote_account: SourceResult[VoteAccountRecord]
    jito: SourceResult[JitoRecord]
    ratings: RatingsReport
    snapshot: ObservationSnapshot
    history: History
    stability: StabilityResult
    share_url: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "validator": {
                "vote": self.validator.vote,
                "name": self.validator.name,
                "vote_from_url": self.validator.vote_from_url,
                "name_from_url": self.validator.name_from_url,
            },
            "vote_account": self.vote_account.to_payload(),
            "jito": self.jito.to_payload(),
            "ratings": self.ratings.to_payload(),
            "snapshot": self.snapshot.to_payload(),
            "history": [s.to_payload() for s in self.history],
            "stability": self.stability.to_payload(),
            "share_url": self.share_url,
        }


def live_status(result: SourceResult[VoteAccountRecord]) -> ValidatorStatus:
    if result.ok and result.data is not None:
        return result.data.status
    if result.status == "not-found":
        return "not-found"
    return "error"


def build_snapshot(
    ts: float,
    vote_account: SourceResult[VoteAccountRecord],
    ratings: RatingsReport,
) -> ObservationSnapshot:
    record = vote_account.data if vote_account.ok else None
    return ObservationSnapshot(
        timestamp=ts,
        status=live_status(vote_account),
        commission=record.commission if record else None,
        uptime_proxy=record.uptime_proxy if record else None,
        apy_source_a=ratings.stakewiz_apy,
        apy_source_b=ratings.trillium_apy,
        pool_count=ratings.pool_count,
    )


class DashboardService:
    """One refresh: live fetches, history append, stability evaluation."""

    def __init__(
        self,
        config: DashboardConfig,
        history: HistoryStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.history = history
        self.clock = clock

    def default_ref(self) -> ValidatorRef:
        return ValidatorRef(vote=self.config.validator_vote, name=self.config.validator_name)

    async def refresh(self, ref: Optional[ValidatorRef] = None, *, page_url: Optional[str] = None) -> DashboardState:
        ref = ref or self.default_ref()
        sources = self.config.sources

        vote_account, jito, ratings = await asyncio.gather(
            asyncio.to_thread(
                fetch_vote_account,
                sources.rpc_urls,
                ref.vote,
                timeout_s=sources.timeout_s,
                window=sources.uptime_window,
            ),
            asyncio.to_thread(lookup_jito, sources.jito_url, ref.vote, timeout_s=sources.timeout_s),
            collect_ratings(ref.vote, sources),
        )

        snapshot = build_snapshot(self.clock(), vote_account, ratings)
        history = self.history.append_if_due(ref.vote, snapshot)
        stability = evaluate(snapshot, history, ratings.pool_count)
        logger.info(
            "Refreshed %s: status=%s score=%s (%s) snapshots=%d",
            ref.vote,
            snapshot.status,
            stability.score,
            stability.label,
            len(history),
        )

        return DashboardState(
            validator=ref,
            vote_account=vote_account,
            jito=jito,
            ratings=ratings,
            snapshot=snapshot,
            history=history,
            stability=stability,
            share_url=build_share_url(page_url, ref) if page_url else None,
        )
