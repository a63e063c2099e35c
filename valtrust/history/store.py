from __future__ import annotations

import json
import logging

from valtrust.core.models import History, ObservationSnapshot, snapshots_from_payloads
from valtrust.config import HistoryConfig
from valtrust.history.kv import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore


logger = logging.getLogger(__name__)

KEY_PREFIX = "valtrust:history:"


def history_key(vote: str) -> str:
    return f"{KEY_PREFIX}{vote}"


class HistoryStore:
    """
    Capped, throttled, append-only snapshot history per validator.

    Concurrent writers are not coordinated; the last write wins.
    """

    def __init__(self, kv: KeyValueStore, *, min_interval_s: float = 30 * 60, max_entries: int = 120):
        self.kv = kv
        self.min_interval_s = float(min_interval_s)
        self.max_entries = max(1, int(max_entries))

    def load(self, vote: str) -> History:
        try:
            raw = self.kv.get(history_key(vote))
        except Exception as e:
            logger.warning("History read failed for %s: %s", vote, e)
            return ()
        if not raw:
            return ()
        try:
            items = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed history for %s", vote)
            return ()
        if not isinstance(items, list):
            return ()
        return snapshots_from_payloads(items)

    def is_due(self, history: History, snapshot: ObservationSnapshot) -> bool:
        if not history:
            return True
        elapsed = snapshot.timestamp - history[-1].timestamp
        return elapsed > 0 and elapsed >= self.min_interval_s

    def append_if_due(self, vote: str, snapshot: ObservationSnapshot) -> History:
        history = self.load(vote)
        if not self.is_due(history, snapshot):
            return history

        updated = (history + (snapshot,))[-self.max_entries:]
        try:
            self.kv.set(history_key(vote), json.dumps([s.to_payload() for s in updated]))
        except Exception as e:
            logger.warning("History write failed for %s: %s", vote, e)
        return updated


def history_store_from_config(cfg: HistoryConfig) -> HistoryStore:
    kv: KeyValueStore = JsonFileKeyValueStore(cfg.path) if cfg.path else InMemoryKeyValueStore()
    return HistoryStore(kv, min_interval_s=cfg.min_interval_s, max_entries=cfg.max_entries)
