from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class JitoProxyResponse(BaseModel):
    jito: bool
    # Matched vote identifier as spelled by the upstream list.
    matched: Optional[str] = None
    count: int = 0
    error: Optional[str] = None


class RpcProxyResponse(BaseModel):
    ok: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class SourceEntry(BaseModel):
    status: str
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class RatingsSources(BaseModel):
    stakewiz: SourceEntry
    trillium: SourceEntry


class StakePoolEntry(BaseModel):
    name: str
    sol: float


class RatingsPools(BaseModel):
    total_from_stake_pools: Optional[float] = None
    total_not_from_stake_pools: Optional[float] = None
    stake_pools: Optional[List[StakePoolEntry]] = None


class RatingsDerived(BaseModel):
    apy_values: List[float] = Field(default_factory=list)
    apy_median: Optional[float] = None
    apy_min: Optional[float] = None
    apy_max: Optional[float] = None


class RatingsMeta(BaseModel):
    updated_at: str


class RatingsResponse(BaseModel):
    vote: str
    sources: RatingsSources
    pools: RatingsPools
    derived: RatingsDerived
    meta: RatingsMeta


class PillEntry(BaseModel):
    ok: bool
    text: str


class StabilityEntry(BaseModel):
    score: int
    label: str
    tracking: str
    pills: List[PillEntry]


class ValidatorEntry(BaseModel):
    vote: str
    name: str
    vote_from_url: Optional[str] = None
    name_from_url: Optional[str] = None


class DashboardResponse(BaseModel):
    validator: ValidatorEntry
    vote_account: SourceEntry
    jito: SourceEntry
    ratings: RatingsResponse
    snapshot: Dict[str, Any]
    history: List[Dict[str, Any]]
    stability: StabilityEntry
    share_url: Optional[str] = None
