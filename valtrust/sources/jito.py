from __future__ import annotations

import logging
from typing import Any, List

from valtrust.core.models import JitoRecord, SourceResult
from valtrust.sources.fields import VOTE_ACCOUNT
from valtrust.sources.http import SourceError, get_json


logger = logging.getLogger(__name__)


def _rows(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("validators"), list):
        return payload["validators"]
    return []


def match_jito(payload: Any, vote: str) -> SourceResult[JitoRecord]:
    rows = _rows(payload)
    for row in rows:
        if VOTE_ACCOUNT.first(row) == vote:
            return SourceResult.success(JitoRecord(jito=True, matched=VOTE_ACCOUNT.first(row), count=len(rows)))
    return SourceResult.not_found(JitoRecord(jito=False, matched=None, count=len(rows)))


def lookup_jito(url: str, vote: str, *, timeout_s: float = 8.0) -> SourceResult[JitoRecord]:
    """Check whether ``vote`` is listed by the Jito block engine."""
    try:
        payload = get_json(url, timeout_s=timeout_s)
    except SourceError as e:
        logger.warning("Jito check failed: %s", e)
        return SourceResult.failed(str(e))
    return match_jito(payload, vote)
