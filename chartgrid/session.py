from __future__ import annotations

import asyncio
import datetime as dt
import logging
import time
from enum import Enum
from typing import Dict, Optional, Tuple

import httpx

from . import config
from .axes import build_date_axis, build_time_axis, days_in_month
from .fetch import (
    AuthInvalid,
    Failed,
    SessionConfig,
    fetch_categories,
    fetch_sample_sets,
)
from .grid import GridSet, build_grid_set, collect_samples
from .selection import SelectionStore
from .view import RevisionCounter, ViewController

logger = logging.getLogger("uvicorn.error")


class SessionState(str, Enum):
    LOADING = "loading"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"
    READY = "ready"


class ChartSession:
    """
    One chart page: two-phase load, then grid, selection and view.

    State goes LOADING -> UNAUTHORIZED | FAILED | READY exactly once.
    """

    def __init__(self, cfg: SessionConfig, now: Optional[dt.datetime] = None,
                 tz: Optional[dt.tzinfo] = None) -> None:
        self.cfg = cfg
        self.tz = tz or config.CHART_TZ
        # "now" is pinned for the whole session so the date columns cannot drift
        self.now = now or dt.datetime.now(self.tz)
        self.date_axis = build_date_axis(self.now, days_in_month(self.now))
        self.time_axis = build_time_axis()

        self.state = SessionState.LOADING
        self.error = ""
        self.grid_set: Optional[GridSet] = None
        self.selection: Optional[SelectionStore] = None
        self.view: Optional[ViewController] = None
        self.revisions = RevisionCounter()
        self._task: Optional[asyncio.Task] = None

    def _finish(self, state: SessionState, error: str = "") -> None:
        self.state = state
        self.error = error

    async def load(self, client: httpx.AsyncClient) -> SessionState:
        if self.state is not SessionState.LOADING:
            return self.state
        logger.info(f"[SESSION] loading city={self.cfg.city_id} set={self.cfg.category_id}")
        try:
            await self._load(client)
        except Exception as e:
            logger.exception(f"[SESSION] unexpected error while loading: {e}")
            self._finish(SessionState.FAILED, f"{type(e).__name__}: {e}")
        return self.state

    async def _load(self, client: httpx.AsyncClient) -> None:
        if not self.cfg.token:
            logger.warning(f"[SESSION] no credential for city={self.cfg.city_id}")
            self._finish(SessionState.UNAUTHORIZED)
            return

        heads = await fetch_categories(client, self.cfg)
        if isinstance(heads, AuthInvalid):
            logger.warning(f"[SESSION] heads rejected with HTTP {heads.status}")
            self._finish(SessionState.UNAUTHORIZED)
            return
        if isinstance(heads, Failed):
            logger.error(f"[SESSION] error fetching heads: {heads.reason}")
            self._finish(SessionState.FAILED, heads.reason)
            return

        categories = heads.data
        samples = await fetch_sample_sets(client, self.cfg, categories, self.date_axis, self.tz)
        if isinstance(samples, AuthInvalid):
            logger.warning(f"[SESSION] samples rejected with HTTP {samples.status}")
            self._finish(SessionState.UNAUTHORIZED)
            return
        if isinstance(samples, Failed):
            logger.error(f"[SESSION] error fetching samples: {samples.reason}")
            self._finish(SessionState.FAILED, samples.reason)
            return

        maps = collect_samples(categories.heads, samples.data)
        self.grid_set = build_grid_set(categories.heads, maps, self.date_axis, self.time_axis, self.tz)
        self.selection = SelectionStore(self.grid_set)
        self.view = ViewController(self.grid_set, self.selection)
        self.view.attach(self.revisions)
        self._finish(SessionState.READY)
        logger.info(f"[SESSION] ready: {len(categories.heads)} heads, {len(samples.data)} records")

    async def ensure_loaded(self, client: httpx.AsyncClient) -> SessionState:
        """Run the load once; concurrent callers wait on the same task."""
        if self.state is not SessionState.LOADING:
            return self.state
        if self._task is None:
            self._task = asyncio.ensure_future(self.load(client))
        return await asyncio.shield(self._task)


# ----------------------------------------------------------------------
# Registry (in memory, one session per header triple, TTL-bounded)
# ----------------------------------------------------------------------
_sessions: Dict[Tuple[str, str, str], Tuple[float, ChartSession]] = {}
_clock = time.time


def _sweep() -> None:
    now = _clock()
    for key in [k for k, (ts, _) in _sessions.items() if now - ts > config.SESSION_TTL_SEC]:
        del _sessions[key]


def get_session(cfg: SessionConfig, force: bool = False) -> ChartSession:
    _sweep()
    ent = _sessions.get(cfg.key)
    if ent is None or force:
        s = ChartSession(cfg)
        _sessions[cfg.key] = (_clock(), s)
        return s
    return ent[1]


def peek_session(cfg: SessionConfig) -> Optional[ChartSession]:
    _sweep()
    ent = _sessions.get(cfg.key)
    return ent[1] if ent else None


def clear_sessions() -> None:
    _sessions.clear()
