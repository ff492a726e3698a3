from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

import httpx

from . import config
from .grid import EMPTY, SampleRecord

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

# ----------------------------------------------------------------------
# Tagged results
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T


@dataclass(frozen=True)
class AuthInvalid:
    status: int


@dataclass(frozen=True)
class Failed:
    reason: str


FetchResult = Union[Success[T], AuthInvalid, Failed]


@dataclass(frozen=True)
class SessionConfig:
    """Per-request identifiers; never read from the environment."""
    token: str
    city_id: str
    category_id: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.token, self.city_id, self.category_id)


@dataclass(frozen=True)
class CategoryList:
    heads: Tuple[str, ...]


# ----------------------------------------------------------------------
# HTTP client
# ----------------------------------------------------------------------
_http: httpx.AsyncClient | None = None


async def ensure_http() -> httpx.AsyncClient:
    global _http
    if _http is None:
        _http = httpx.AsyncClient(
            timeout=config.HTTP_TIMEOUT,
            headers={"content-type": "application/json"},
            follow_redirects=True,
        )
    return _http


async def close_http():
    global _http
    try:
        if _http is not None:
            await _http.aclose()
    finally:
        _http = None


def _category_url(cfg: SessionConfig) -> str:
    return f"{config.FIRESTORE_BASE_URL}/Cities/{cfg.city_id}/categories/{cfg.category_id}"


async def _get_json(client: httpx.AsyncClient, url: str, cfg: SessionConfig,
                    params: Optional[Dict[str, Any]] = None) -> FetchResult[Dict[str, Any]]:
    try:
        r = await client.get(url, params=params, headers={"authorization": f"Bearer {cfg.token}"})
    except httpx.HTTPError as e:
        return Failed(f"{type(e).__name__}: {e}")
    if r.status_code in (401, 403):
        return AuthInvalid(r.status_code)
    if not r.is_success:
        return Failed(f"HTTP {r.status_code} {r.reason_phrase} for {url}")
    try:
        return Success(r.json())
    except ValueError as e:
        return Failed(f"invalid JSON from {url}: {e}")


# ----------------------------------------------------------------------
# Phase (a): heads
# ----------------------------------------------------------------------


async def fetch_categories(client: httpx.AsyncClient, cfg: SessionConfig) -> FetchResult[CategoryList]:
    res = await _get_json(client, _category_url(cfg), cfg, {"mask.fieldPaths": "heads"})
    if not isinstance(res, Success):
        return res
    try:
        values = res.data["fields"]["heads"]["arrayValue"].get("values", [])
        heads = tuple(str(v["stringValue"]) for v in values)
    except (KeyError, TypeError, AttributeError) as e:
        return Failed(f"malformed heads document: missing {e}")
    if not heads:
        return Failed("heads document lists no categories")
    return Success(CategoryList(heads))


# ----------------------------------------------------------------------
# Phase (b): per-date samples
# ----------------------------------------------------------------------


def parse_timestamp(s: str, tz: dt.tzinfo) -> Optional[dt.datetime]:
    if not s:
        return None
    try:
        ts = dt.datetime.fromisoformat(s.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=tz)
    return ts


def _field(obj: Any, *keys: str) -> Any:
    for k in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(k)
    return obj


def parse_documents(payload: Any, tz: dt.tzinfo) -> List[SampleRecord]:
    """Records from one page of documents; anything malformed is skipped."""
    out: List[SampleRecord] = []
    docs = _field(payload, "documents")
    for doc in docs if isinstance(docs, list) else []:
        ts_raw = _field(doc, "fields", "ts", "stringValue")
        ts = parse_timestamp(ts_raw, tz) if isinstance(ts_raw, str) else None
        if ts is None:
            logger.debug(f"[FETCH] skipping document without timestamp: {_field(doc, 'name')}")
            continue
        values = _field(doc, "fields", "data", "arrayValue", "values")
        if not isinstance(values, list):
            values = []
        cells = []
        for v in values:
            iv = _field(v, "integerValue")
            cells.append(EMPTY if iv is None else str(iv))
        out.append(SampleRecord(ts, tuple(cells)))
    return out


async def fetch_samples_for_date(client: httpx.AsyncClient, cfg: SessionConfig, day: dt.date,
                                 tz: dt.tzinfo) -> FetchResult[List[SampleRecord]]:
    url = f"{_category_url(cfg)}/data/{day.isoformat()}/values"
    records: List[SampleRecord] = []
    params: Dict[str, Any] = {}
    while True:
        res = await _get_json(client, url, cfg, params or None)
        if not isinstance(res, Success):
            return res
        records += parse_documents(res.data, tz)
        token = _field(res.data, "nextPageToken")
        if not token:
            return Success(records)
        params = {"pageToken": token}


def aggregate(results: Sequence[FetchResult[List[SampleRecord]]]) -> FetchResult[List[SampleRecord]]:
    """An auth failure anywhere wins, then any other failure, else all records."""
    for r in results:
        if isinstance(r, AuthInvalid):
            return r
    for r in results:
        if isinstance(r, Failed):
            return r
    records: List[SampleRecord] = []
    for r in results:
        records += r.data
    return Success(records)


async def fetch_sample_sets(client: httpx.AsyncClient, cfg: SessionConfig, categories: CategoryList,
                            dates: Sequence[dt.date], tz: dt.tzinfo) -> FetchResult[List[SampleRecord]]:
    """
    Fire one request per date and wait for all of them.

    Takes the resolved CategoryList so the call cannot be issued before the
    heads are known; record values are positional against that list.
    """
    logger.info(f"[FETCH] {len(dates)} dates for {len(categories.heads)} heads")
    results = await asyncio.gather(*(fetch_samples_for_date(client, cfg, d, tz) for d in dates))
    return aggregate(results)
