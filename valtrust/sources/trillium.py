from __future__ import annotations

import logging
from typing import Any, Mapping

from valtrust.core.models import SourceResult, TrilliumRecord, stake_pools_from_mapping
from valtrust.sources.fields import (
    IDENTITY,
    TRILLIUM_DELEGATOR_TOTAL_APY,
    TRILLIUM_OVERALL_TOTAL_APY,
    number,
)
from valtrust.sources.http import SourceError, get_json


logger = logging.getLogger(__name__)


def parse_trillium_row(row: Mapping[str, Any]) -> TrilliumRecord:
    return TrilliumRecord(
        average_delegator_total_apy=TRILLIUM_DELEGATOR_TOTAL_APY.first(row),
        total_overall_apy=TRILLIUM_OVERALL_TOTAL_APY.first(row),
        average_delegator_inflation_apy=number("average_delegator_inflation_apy").first(row),
        average_delegator_mev_apy=number("average_delegator_mev_apy").first(row),
        average_total_inflation_apy=number("average_total_inflation_apy").first(row),
        average_total_mev_apy=number("average_total_mev_apy").first(row),
        total_from_stake_pools=number("total_from_stake_pools").first(row),
        total_not_from_stake_pools=number("total_not_from_stake_pools").first(row),
        identity_pubkey=IDENTITY.first(row),
        vote_account_pubkey=row.get("vote_account_pubkey") or None,
        stake_pools=stake_pools_from_mapping(row.get("stake_pools")),
    )


def fetch_trillium(url: str, vote: str, *, timeout_s: float = 8.0) -> SourceResult[TrilliumRecord]:
    """Find ``vote`` in Trillium's recency-weighted rewards table."""
    try:
        payload = get_json(url, timeout_s=timeout_s)
    except SourceError as e:
        logger.warning("Trillium fetch failed: %s", e)
        return SourceResult.failed(str(e))

    if not isinstance(payload, list):
        return SourceResult.failed("Trillium response is not an array")

    for row in payload:
        if isinstance(row, dict) and row.get("vote_account_pubkey") == vote:
            return SourceResult.success(parse_trillium_row(row))
    return SourceResult.not_found(error="Vote account not found in Trillium dataset")
