from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from valtrust.utils.env import _env_csv, _env_float, _env_int, _env_str


DEFAULT_VALIDATOR_VOTE = "3QPGLackJy5LKctYYoPGmA4P8ncyE197jdxr1zP2ho8K"
DEFAULT_VALIDATOR_NAME = "AndrewInUA"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
ANKR_RPC_URL = "https://rpc.ankr.com/solana"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"

JITO_VALIDATORS_URL = "https://mainnet.block-engine.jito.wtf/api/v1/validators"
STAKEWIZ_VALIDATOR_URL = "https://api.stakewiz.com/validator/{vote}"
TRILLIUM_REWARDS_URL = "https://api.trillium.so/recency_weighted_average_validator_rewards"

DEFAULT_HISTORY_PATH = "~/.valtrust/history.json"
# VALTRUST_HISTORY_PATH value that keeps history in memory only.
HISTORY_IN_MEMORY = "memory"


@dataclass(frozen=True)
class SourcesConfig:
    rpc_urls: Tuple[str, ...] = (MAINNET_RPC_URL, ANKR_RPC_URL)
    jito_url: str = JITO_VALIDATORS_URL
    stakewiz_url: str = STAKEWIZ_VALIDATOR_URL
    trillium_url: str = TRILLIUM_REWARDS_URL
    timeout_s: float = 8.0
    # Trailing epochs used to normalize vote-credit deltas.
    uptime_window: int = 5


@dataclass(frozen=True)
class HistoryConfig:
    # None keeps history in memory only.
    path: Optional[str] = DEFAULT_HISTORY_PATH
    min_interval_s: float = 30 * 60
    max_entries: int = 120


@dataclass(frozen=True)
class DashboardConfig:
    validator_vote: str = DEFAULT_VALIDATOR_VOTE
    validator_name: str = DEFAULT_VALIDATOR_NAME
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def _die(msg: str) -> None:
    raise SystemExit(f"[valtrust] {msg}")


def _number(reader, name: str, default):
    try:
        return reader(name, default)
    except ValueError:
        _die(f"Invalid numeric value for {name}.")


def _rpc_urls() -> Tuple[str, ...]:
    urls = _env_csv("VALTRUST_RPC_URLS") or [MAINNET_RPC_URL, ANKR_RPC_URL]
    helius_key = _env_str("HELIUS_API_KEY", "")
    if helius_key:
        urls.insert(0, HELIUS_MAINNET_URL_TEMPLATE.format(key=helius_key))

    out = []
    for url in urls:
        if not url.startswith("http"):
            _die(f"RPC URLs must be http(s). Got: {url!r}")
        if url not in out:
            out.append(url)
    return tuple(out)


def _history_path() -> Optional[str]:
    raw = _env_str("VALTRUST_HISTORY_PATH", DEFAULT_HISTORY_PATH) or DEFAULT_HISTORY_PATH
    if raw.lower() == HISTORY_IN_MEMORY:
        return None
    return raw


def load_dashboard_env() -> DashboardConfig:
    """
    Load dashboard configuration from env/.env with strict validation.

    The returned object is passed explicitly to the aggregator, the
    dashboard service and the API app.
    """
    vote = _env_str("VALTRUST_VALIDATOR_VOTE", DEFAULT_VALIDATOR_VOTE) or DEFAULT_VALIDATOR_VOTE
    name = _env_str("VALTRUST_VALIDATOR_NAME", DEFAULT_VALIDATOR_NAME) or DEFAULT_VALIDATOR_NAME

    stakewiz_url = _env_str("VALTRUST_STAKEWIZ_URL", STAKEWIZ_VALIDATOR_URL) or STAKEWIZ_VALIDATOR_URL
    if "{vote}" not in stakewiz_url:
        _die(f"VALTRUST_STAKEWIZ_URL must contain a '{{vote}}' placeholder. Got: {stakewiz_url!r}")

    timeout_s = _number(_env_float, "VALTRUST_TIMEOUT_S", 8.0)
    if timeout_s <= 0:
        _die(f"VALTRUST_TIMEOUT_S must be positive. Got: {timeout_s!r}")

    window = _number(_env_int, "VALTRUST_UPTIME_WINDOW", 5)
    if window < 1:
        _die(f"VALTRUST_UPTIME_WINDOW must be >= 1. Got: {window!r}")

    sources = SourcesConfig(
        rpc_urls=_rpc_urls(),
        jito_url=_env_str("VALTRUST_JITO_URL", JITO_VALIDATORS_URL) or JITO_VALIDATORS_URL,
        stakewiz_url=stakewiz_url,
        trillium_url=_env_str("VALTRUST_TRILLIUM_URL", TRILLIUM_REWARDS_URL) or TRILLIUM_REWARDS_URL,
        timeout_s=float(timeout_s),
        uptime_window=int(window),
    )

    min_interval_s = _number(_env_float, "VALTRUST_HISTORY_MIN_INTERVAL_S", 1800.0)
    max_entries = _number(_env_int, "VALTRUST_HISTORY_MAX_ENTRIES", 120)
    if max_entries < 1:
        _die(f"VALTRUST_HISTORY_MAX_ENTRIES must be >= 1. Got: {max_entries!r}")

    history = HistoryConfig(
        path=_history_path(),
        min_interval_s=max(0.0, float(min_interval_s)),
        max_entries=int(max_entries),
    )

    cors_raw = _env_str("VALTRUST_CORS_ORIGINS", "*") or "*"
    if cors_raw == "*":
        cors_origins: Tuple[str, ...] = ("*",)
    else:
        cors_origins = tuple(x.strip() for x in cors_raw.split(",") if x.strip())

    return DashboardConfig(
        validator_vote=vote,
        validator_name=name,
        sources=sources,
        history=history,
        cors_origins=cors_origins,
        log_level=(_env_str("VALTRUST_LOG_LEVEL", "INFO") or "INFO").upper(),
    )
