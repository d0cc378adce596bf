import asyncio
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from atelier import views
from atelier.api.deps import StoreDep
from atelier.errors import NotFound

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))


@router.get("/colecoes/{series_id}", response_class=HTMLResponse)
async def landing_page(request: Request, series_id: str, store: StoreDep) -> HTMLResponse:
    try:
        landing = await asyncio.to_thread(views.landing, store=store, series_id=series_id)
    except NotFound:
        return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)
    return templates.TemplateResponse(request, "landing.html", {"landing": landing})
