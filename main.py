# Lottery Chart API – v1.0.0
# - Carrega os heads (categorias) e os sorteios do mês no Firestore em 2 fases:
#     1) lista de heads da categoria
#     2) sorteios de cada data do mês, em paralelo (barreira)
# - Monta um grid data × horário por head; seleção por célula; UI simples em /app.

from __future__ import annotations
import logging

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from chartgrid import config
from chartgrid.fetch import SessionConfig, close_http, ensure_http
from chartgrid.selection import InvalidCellError
from chartgrid.session import ChartSession, SessionState, get_session, peek_session
from chartgrid.view import InvalidCategoryError

APP_VERSION = "1.0.0"

# ----------------------------------------------------------------------
# App
# ----------------------------------------------------------------------
app = FastAPI(title="Lottery Chart API", version=APP_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.on_event("startup")
async def _log_config_at_startup():
    logger.info(f"[CONFIG] firestore = {config.FIRESTORE_BASE_URL}")
    logger.info(f"[CONFIG] tz = {config.CHART_TZ} timeout = {config.HTTP_TIMEOUT}s")


# ----------------------------------------------------------------------
# Sessão (headers -> SessionConfig)
# ----------------------------------------------------------------------


def _strip_bearer(value: Optional[str]) -> str:
    v = (value or "").strip()
    if v.lower().startswith("bearer "):
        v = v[7:].strip()
    return v


def _session_config(authorization: Optional[str], city_id: Optional[str],
                    category_id: Optional[str]) -> Optional[SessionConfig]:
    if not city_id or not category_id:
        return None
    return SessionConfig(token=_strip_bearer(authorization), city_id=city_id, category_id=category_id)


def _missing_ids() -> JSONResponse:
    return JSONResponse({"ok": False, "error": "X-City-Id and X-Category-Id headers are required"},
                        status_code=400)


def _payload(s: ChartSession) -> Dict[str, Any]:
    if s.state is SessionState.UNAUTHORIZED:
        return {"ok": False, "state": s.state.value}
    if s.state is not SessionState.READY:
        return {"ok": False, "state": s.state.value, "error": s.error}
    return {
        "ok": True,
        "state": s.state.value,
        "categories": list(s.grid_set.categories),
        "active": s.view.active_category,
        "revision": s.revisions.revision,
        "snapshot": asdict(s.view.snapshot()),
    }


def _status_code(s: ChartSession) -> int:
    return {
        SessionState.READY: 200,
        SessionState.UNAUTHORIZED: 401,
        SessionState.FAILED: 502,
    }.get(s.state, 202)


def _ready_session(cfg: Optional[SessionConfig]) -> ChartSession | JSONResponse:
    if cfg is None:
        return _missing_ids()
    s = peek_session(cfg)
    if s is None or s.state is not SessionState.READY:
        state = s.state.value if s else "none"
        return JSONResponse({"ok": False, "state": state, "error": "grid is not ready"}, status_code=409)
    return s


class ActiveBody(BaseModel):
    category: str


class ToggleBody(BaseModel):
    row: int
    col: int


class SelectAllBody(BaseModel):
    checked: bool = True


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------


@app.get("/", response_class=JSONResponse)
async def root():
    return {
        "message": "Lottery Chart API está online!",
        "version": APP_VERSION,
        "docs": "/docs",
        "examples": {
            "grid": "/grid",
            "toggle": "POST /grid/toggle {row, col}",
            "select_all": "POST /grid/select-all {checked}",
            "active": "POST /grid/active {category}",
            "ui": "/app",
        },
    }


@app.get("/health", response_class=JSONResponse)
async def health():
    return {"status": "ok", "app": "Lottery Chart API", "version": APP_VERSION}


@app.get("/grid", response_class=JSONResponse)
async def grid(force: bool = False,
               authorization: Optional[str] = Header(None),
               x_city_id: Optional[str] = Header(None),
               x_category_id: Optional[str] = Header(None)):
    cfg = _session_config(authorization, x_city_id, x_category_id)
    if cfg is None:
        return _missing_ids()
    s = get_session(cfg, force=force)
    await s.ensure_loaded(await ensure_http())
    return JSONResponse(_payload(s), status_code=_status_code(s))


@app.post("/grid/active", response_class=JSONResponse)
async def set_active(body: ActiveBody,
                     authorization: Optional[str] = Header(None),
                     x_city_id: Optional[str] = Header(None),
                     x_category_id: Optional[str] = Header(None)):
    s = _ready_session(_session_config(authorization, x_city_id, x_category_id))
    if isinstance(s, JSONResponse):
        return s
    try:
        s.view.set_active(body.category)
    except InvalidCategoryError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
    return _payload(s)


@app.post("/grid/toggle", response_class=JSONResponse)
async def toggle(body: ToggleBody,
                 authorization: Optional[str] = Header(None),
                 x_city_id: Optional[str] = Header(None),
                 x_category_id: Optional[str] = Header(None)):
    s = _ready_session(_session_config(authorization, x_city_id, x_category_id))
    if isinstance(s, JSONResponse):
        return s
    try:
        selected = s.view.toggle(body.row, body.col)
    except InvalidCellError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
    return {"ok": True, "row": body.row, "col": body.col, "selected": selected,
            "revision": s.revisions.revision}


@app.post("/grid/select-all", response_class=JSONResponse)
async def select_all(body: SelectAllBody,
                     authorization: Optional[str] = Header(None),
                     x_city_id: Optional[str] = Header(None),
                     x_category_id: Optional[str] = Header(None)):
    s = _ready_session(_session_config(authorization, x_city_id, x_category_id))
    if isinstance(s, JSONResponse):
        return s
    s.view.select_all(body.checked)
    return _payload(s)


@app.get("/grid/selection", response_class=JSONResponse)
async def selection(category: Optional[str] = Query(None),
                    authorization: Optional[str] = Header(None),
                    x_city_id: Optional[str] = Header(None),
                    x_category_id: Optional[str] = Header(None)):
    s = _ready_session(_session_config(authorization, x_city_id, x_category_id))
    if isinstance(s, JSONResponse):
        return s
    cat = category or s.view.active_category
    try:
        cells = s.selection.selected_cells(cat)
    except InvalidCellError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
    return {"ok": True, "category": cat, "count": len(cells), "cells": [list(c) for c in cells]}


# ----------------------------------------------------------------------
# UI (grid com cabeçalho fixo, seleção por clique)
# ----------------------------------------------------------------------


@app.get("/app", response_class=HTMLResponse)
async def ui(authorization: Optional[str] = Header(None),
             x_city_id: Optional[str] = Header(None),
             x_category_id: Optional[str] = Header(None)):
    # Headers reach the page only through the hosting request, so the page gets them inlined.
    session_headers = {
        "authorization": authorization or "",
        "x-city-id": x_city_id or "",
        "x-category-id": x_category_id or "",
    }
    html = """
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>Chart</title>
<style>
body{ font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto; margin:0; }
.bar{ position:sticky; top:0; background:#fff; z-index:1000; padding:8px; display:flex; gap:16px; align-items:center; }
select{ padding:8px 12px; font-size:14px; width:120px; border-radius:4px; border:1px solid #ddd; }
.chk{ background:#f5f5f5; padding:4px 8px; border-radius:4px; border:1px solid #ddd; }
.wrap{ overflow:auto; height:calc(100vh - 100px); }
table{ border-collapse:collapse; }
td{ width:60px; height:30px; text-align:center; border:1px solid #c8e1ff; padding:2px; white-space:pre; font-size:12px; }
td.top{ background:red; color:#fff; position:sticky; top:0; }
td.left{ background:#000; color:#fff; position:sticky; left:0; }
td.top.left{ z-index:2; }
td.val{ cursor:pointer; font-weight:bold; }
.msg{ display:flex; justify-content:center; align-items:center; height:80vh; flex-direction:column; }
.spin{ width:32px; height:32px; border:3px solid #94a3b8; border-top-color:transparent; border-radius:999px; animation:spin .8s linear infinite; }
@keyframes spin{ to{ transform:rotate(360deg) } }
</style>
</head>
<body>
<div id="root"><div class="msg"><div class="spin"></div><p>Loading data...</p></div></div>

<script>
const HEADERS = {SESSION_HEADERS};
const COLORS = ["#FFFFE0","#F5FFFA","#E6E6FA","#E0FFFF","#FFDAB9","#FAF0E6","#F0FFF0","#F0F8FF","#FFF5EE","#FFE4E1"];

async function call(method, url, body){
  const opts = { method, headers: Object.assign({'content-type':'application/json'}, HEADERS) };
  if(body !== undefined) opts.body = JSON.stringify(body);
  const r = await fetch(url, opts);
  return { status: r.status, data: await r.json() };
}

function esc(s){
  return String(s).replace(/&/g,'&amp;').replace(/</g,'&lt;').replace(/>/g,'&gt;').replace(/"/g,'&quot;');
}

function message(title, text){
  document.getElementById('root').innerHTML = `<div class="msg"><h2>${esc(title)}</h2><p>${esc(text)}</p></div>`;
}

function paint(p){
  const snap = p.snapshot;
  const opts = p.categories.map(c => `<option value="${esc(c)}" ${c===p.active?'selected':''}>${esc(c)} Chart</option>`).join('');
  let rows = '', data = 0, picked = 0;
  snap.cells.forEach((row, r) => {
    rows += '<tr>' + row.map((cell, c) => {
      const isData = !cell.is_header_row && !cell.is_header_column && cell.value !== '-';
      if(isData){ data++; if(cell.selected) picked++; }
      const cls = [cell.is_header_row?'top':'', cell.is_header_column?'left':'',
                   isData?'val':''].join(' ');
      const bg = cell.selected ? ` style="background:${COLORS[(r+1)%COLORS.length]}"` : '';
      return `<td class="${cls}" data-r="${r}" data-c="${c}"${bg}>${esc(cell.value)}</td>`;
    }).join('') + '</tr>';
  });
  document.getElementById('root').innerHTML = `
    <div class="bar">
      <select id="sel">${opts}</select>
      <label class="chk"><input type="checkbox" id="all" ${data>0 && picked===data?'checked':''}> Select All</label>
    </div>
    <div class="wrap"><table>${rows}</table></div>`;
  document.getElementById('sel').onchange = async e => render(await call('POST','/grid/active',{category:e.target.value}));
  document.getElementById('all').onchange = async e => render(await call('POST','/grid/select-all',{checked:e.target.checked}));
  document.querySelectorAll('td.val').forEach(td => td.onclick = async () => {
    await call('POST','/grid/toggle',{row:+td.dataset.r, col:+td.dataset.c});
    render(await call('GET','/grid'));
  });
}

function render(res){
  const p = res.data;
  if(p.state === 'unauthorized'){
    return message('Unauthorized Access','You do not have permission to view this content. Please check your credentials and try again.');
  }
  if(p.state === 'failed'){
    return message('Could not load data', p.error || 'The data service did not answer.');
  }
  if(!p.ok){ return message('Error', p.error || p.state); }
  paint(p);
}

call('GET','/grid').then(render).catch(e => message('Could not load data', String(e)));
</script>
</body>
</html>
"""
    return HTMLResponse(html.replace("{SESSION_HEADERS}", json.dumps(session_headers).replace("</", "<\\/")))


@app.get("/privacy", response_class=HTMLResponse)
async def privacy():
    return HTMLResponse("""
<!doctype html>
<html lang="en">
<head><meta charset="utf-8" /><title>Privacy Policy</title></head>
<body style="font-family:ui-sans-serif,system-ui; max-width:720px; margin:40px auto; padding:0 16px;">
<h1 style="color:#D9252A">Privacy Policy</h1>
<p>This application does not collect personal data. Draw results are read from the
configured data service with the credential supplied by the hosting page and are kept
in memory only for the lifetime of the chart session.</p>
<p>Cell selections live in server memory and are discarded when the session is replaced.</p>
</body>
</html>
""")


@app.on_event("shutdown")
async def _shutdown():
    await close_http()
