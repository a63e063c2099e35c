from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from valtrust import __version__
from valtrust.aggregator import collect_ratings
from valtrust.api.schemas import DashboardResponse, JitoProxyResponse, RatingsResponse, RpcProxyResponse
from valtrust.config import DashboardConfig, load_dashboard_env
from valtrust.dashboard.service import DashboardService
from valtrust.dashboard.view import resolve_validator
from valtrust.history.store import HistoryStore, history_store_from_config
from valtrust.sources.jito import lookup_jito
from valtrust.sources.rpc import fetch_vote_account


logger = logging.getLogger(__name__)


def _require_vote(vote: Optional[str]) -> str:
    v = (vote or "").strip()
    if not v:
        raise HTTPException(status_code=400, detail="Missing vote param")
    return v


def create_app(config: Optional[DashboardConfig] = None, history: Optional[HistoryStore] = None) -> FastAPI:
    config = config or load_dashboard_env()
    history = history or history_store_from_config(config.history)
    service = DashboardService(config, history)
    sources = config.sources

    app = FastAPI(title="valtrust validator dashboard", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.config = config
    app.state.service = service

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "version": __version__}

    @app.get("/api/jito", response_model=JitoProxyResponse)
    def jito(response: Response, vote: Optional[str] = None):
        v = _require_vote(vote)
        result = lookup_jito(sources.jito_url, v, timeout_s=sources.timeout_s)
        if result.status == "error" or result.data is None:
            logger.warning("Jito proxy error for %s: %s", v, result.error)
            return JitoProxyResponse(jito=False, matched=None, count=0, error="proxy_error")
        response.headers["Cache-Control"] = "s-maxage=60, stale-while-revalidate=300"
        return JitoProxyResponse(jito=result.data.jito, matched=result.data.matched, count=result.data.count)

    @app.get("/api/rpc", response_model=RpcProxyResponse)
    def rpc(vote: Optional[str] = None):
        v = _require_vote(vote)
        result = fetch_vote_account(
            sources.rpc_urls,
            v,
            timeout_s=sources.timeout_s,
            window=sources.uptime_window,
        )
        if result.status == "error":
            raise HTTPException(status_code=502, detail=result.error or "All RPC endpoints failed")
        if not result.ok or result.data is None:
            return RpcProxyResponse(ok=False, data=None, error=result.error)
        return RpcProxyResponse(ok=True, data=result.data.to_payload())

    @app.get("/api/ratings", response_model=RatingsResponse)
    async def ratings(response: Response, vote: Optional[str] = None):
        v = _require_vote(vote)
        report = await collect_ratings(v, sources)
        response.headers["Cache-Control"] = "no-store"
        return report.to_payload()

    @app.get("/api/dashboard", response_model=DashboardResponse)
    async def dashboard(
        response: Response,
        vote: Optional[str] = None,
        name: Optional[str] = None,
        page_url: Optional[str] = None,
    ):
        ref = resolve_validator(config.validator_vote, config.validator_name, vote=vote, name=name)
        state = await service.refresh(ref, page_url=page_url)
        response.headers["Cache-Control"] = "no-store"
        return state.to_payload()

    return app


app = create_app()
