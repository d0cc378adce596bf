import asyncio
from typing import Any

from fastapi import APIRouter

from atelier import views
from atelier.api.deps import StoreDep

router = APIRouter(prefix="/browse", tags=["browse"])


@router.get("/", response_model=views.BrowseView)
async def read_browse(store: StoreDep) -> Any:
    return await asyncio.to_thread(views.browse, store=store)


@router.get("/landing/{series_id}", response_model=views.LandingView)
async def read_landing(series_id: str, store: StoreDep) -> Any:
    return await asyncio.to_thread(views.landing, store=store, series_id=series_id)
