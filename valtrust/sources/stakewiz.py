from __future__ import annotations

import logging
from urllib.parse import quote

from valtrust.core.models import SourceResult, StakewizRecord, int_or_none
from valtrust.sources.fields import STAKEWIZ_TOTAL_APY, number
from valtrust.sources.http import SourceError, get_json


logger = logging.getLogger(__name__)


def fetch_stakewiz(url_template: str, vote: str, *, timeout_s: float = 8.0) -> SourceResult[StakewizRecord]:
    url = url_template.format(vote=quote(vote, safe=""))
    try:
        payload = get_json(url, timeout_s=timeout_s)
    except SourceError as e:
        if e.status_code == 404:
            return SourceResult.not_found(error="Vote account not found in Stakewiz")
        logger.warning("Stakewiz fetch failed: %s", e)
        return SourceResult.failed(str(e))

    if not isinstance(payload, dict) or not payload:
        return SourceResult.not_found(error="Vote account not found in Stakewiz")

    return SourceResult.success(
        StakewizRecord(
            rank=int_or_none(payload.get("rank")),
            is_jito=bool(payload.get("is_jito")),
            apy_estimate=number("apy_estimate").first(payload),
            staking_apy=number("staking_apy").first(payload),
            jito_apy=number("jito_apy").first(payload),
            total_apy=STAKEWIZ_TOTAL_APY.first(payload),
        )
    )
