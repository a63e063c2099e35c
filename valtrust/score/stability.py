"""
Explainable stability score for a validator.

Blends live signals with the locally recorded history into a 0-100 score,
a label and a list of pass/fail pills. Pure: no I/O, never raises.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from valtrust.core.models import ObservationSnapshot, Pill, StabilityResult, finite_or_none


DELINQUENT_PENALTY = 40.0
HISTORY_DELINQUENCY_WEIGHT = 40.0
COMMISSION_CHANGE_PENALTY = 5.0
COMMISSION_CHANGE_CAP = 20.0
UPTIME_TARGET = 95.0
UPTIME_FAIR = 90.0
UPTIME_SLOPE = 1.5
UPTIME_CAP = 20.0
APY_TOLERANCE = 1.0
APY_SLOPE = 5.0
APY_CAP = 15.0
APY_ALIGNED = 0.75
APY_CLOSE = 1.5
NO_POOLS_PENALTY = 10.0

LABELS: Tuple[Tuple[int, str], ...] = ((85, "Strong"), (70, "Good"), (50, "Watch"))


def delinquency_rate(history: Sequence[ObservationSnapshot]) -> float:
    if not history:
        return 0.0
    unhealthy = sum(1 for s in history if s.status != "healthy")
    return unhealthy / len(history)


def count_commission_changes(history: Sequence[ObservationSnapshot]) -> int:
    changes = 0
    for prev, cur in zip(history, history[1:]):
        if prev.commission is None or cur.commission is None:
            continue
        if prev.commission != cur.commission:
            changes += 1
    return changes


def apy_difference(live: ObservationSnapshot) -> Optional[float]:
    a = finite_or_none(live.apy_source_a)
    b = finite_or_none(live.apy_source_b)
    if a is None or b is None:
        return None
    return abs(a - b)


def score_label(score: int) -> str:
    for threshold, label in LABELS:
        if score >= threshold:
            return label
    return "Risk"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def tracking_text(history: Sequence[ObservationSnapshot]) -> str:
    n = len(history)
    if n < 2:
        return "First visit: tracking starts now"
    elapsed = max(0.0, history[-1].timestamp - history[0].timestamp)
    days = int(elapsed // 86400)
    span = _plural(days, "day") if days >= 1 else _plural(int(elapsed // 3600), "hour")
    return f"Tracking for {span} ({_plural(n, 'snapshot')} stored locally)"


def _penalty(live: ObservationSnapshot, history: Sequence[ObservationSnapshot], pool_count: Optional[int]) -> float:
    total = 0.0
    if live.status == "delinquent":
        total += DELINQUENT_PENALTY

    total += delinquency_rate(history) * HISTORY_DELINQUENCY_WEIGHT
    total += min(COMMISSION_CHANGE_CAP, count_commission_changes(history) * COMMISSION_CHANGE_PENALTY)

    uptime = finite_or_none(live.uptime_proxy)
    if uptime is not None and uptime < UPTIME_TARGET:
        total += min(UPTIME_CAP, (UPTIME_TARGET - uptime) * UPTIME_SLOPE)

    diff = apy_difference(live)
    if diff is not None and diff > APY_TOLERANCE:
        total += min(APY_CAP, (diff - APY_TOLERANCE) * APY_SLOPE)

    pools = finite_or_none(pool_count)
    if pools is None or pools <= 0:
        total += NO_POOLS_PENALTY
    return total


def build_pills(
    live: ObservationSnapshot,
    history: Sequence[ObservationSnapshot],
    pool_count: Optional[int],
) -> Tuple[Pill, ...]:
    n = len(history)
    pills: List[Pill] = []

    if n >= 2:
        unhealthy = sum(1 for s in history if s.status != "healthy")
        if unhealthy == 0:
            pills.append(Pill(True, f"No delinquency across {_plural(n, 'snapshot')}"))
        else:
            pills.append(Pill(False, f"Unhealthy in {unhealthy} of {_plural(n, 'snapshot')}"))
    elif live.status == "healthy":
        pills.append(Pill(True, "Currently healthy (history building)"))
    else:
        pills.append(Pill(False, f"Currently {live.status}"))

    if n >= 2:
        changes = count_commission_changes(history)
        if changes == 0:
            pills.append(Pill(True, "Commission stable"))
        else:
            pills.append(Pill(False, f"Commission changed {changes}x"))
    else:
        pills.append(Pill(False, "Commission stability: insufficient data yet"))

    diff = apy_difference(live)
    if diff is None:
        pills.append(Pill(False, "APY sources: unavailable"))
    elif diff <= APY_ALIGNED:
        pills.append(Pill(True, f"APY sources aligned (Δ {diff:.2f}%)"))
    elif diff <= APY_CLOSE:
        pills.append(Pill(True, f"APY sources close (Δ {diff:.2f}%)"))
    else:
        pills.append(Pill(False, f"APY source disagreement (Δ {diff:.2f}%)"))

    uptime = finite_or_none(live.uptime_proxy)
    if uptime is None:
        pills.append(Pill(False, "Voting consistency: unavailable"))
    elif uptime >= UPTIME_TARGET:
        pills.append(Pill(True, f"Voting consistent ({uptime:.2f}%)"))
    elif uptime >= UPTIME_FAIR:
        pills.append(Pill(True, f"Voting mostly consistent ({uptime:.2f}%)"))
    else:
        pills.append(Pill(False, f"Voting inconsistent ({uptime:.2f}%)"))

    pools = finite_or_none(pool_count)
    if pools is not None and pools > 0:
        pills.append(Pill(True, f"Stake pools present ({int(pools)})"))
    else:
        pills.append(Pill(False, "No stake pool presence"))

    return tuple(pills)


def evaluate(
    live: ObservationSnapshot,
    history: Sequence[ObservationSnapshot],
    pool_count: Optional[int] = None,
) -> StabilityResult:
    history = tuple(history or ())
    raw = 100.0 - _penalty(live, history, pool_count)
    clamped = min(100.0, max(0.0, raw))
    # Round half up.
    score = int(clamped + 0.5)
    return StabilityResult(
        score=score,
        label=score_label(score),
        tracking=tracking_text(history),
        pills=build_pills(live, history, pool_count),
    )
