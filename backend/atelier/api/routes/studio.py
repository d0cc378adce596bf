import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, UploadFile

from atelier import crud, views
from atelier.agent.artifacts import CollectionSuggestions, CompiledCollection
from atelier.agent.gateway import ContentGateway
from atelier.api.deps import CurrentUser, GatewayDep, OwnedSeries, StoreDep
from atelier.editor import CollectionEditor, UploadReport
from atelier.errors import NotFound, PersistenceFailure
from atelier.models import (
    Message,
    ModuleDraft,
    ModulePublic,
    SeriesCreate,
    SeriesPublic,
    SeriesSuggestionRequest,
    SeriesTree,
    SeriesUpdate,
    TattooPublic,
    TattooUpdate,
    UserProfile,
)
from atelier.store import DocumentStore

router = APIRouter(prefix="/studio/series", tags=["studio"])
logger = logging.getLogger(__name__)


async def _open_editor(
    series: SeriesPublic, store: DocumentStore, gateway: ContentGateway, user: UserProfile
) -> CollectionEditor:
    return await CollectionEditor.open(store=store, gateway=gateway, series_id=series.id, user=user)


@router.get("/", response_model=views.DashboardView)
async def read_dashboard(store: StoreDep, current_user: CurrentUser) -> Any:
    return await asyncio.to_thread(views.dashboard, store=store, owner_id=current_user.id)


@router.post("/", response_model=SeriesPublic)
async def create_series(store: StoreDep, current_user: CurrentUser, series_in: SeriesCreate) -> Any:
    series = await asyncio.to_thread(
        crud.create_series, store=store, series_in=series_in, owner_id=current_user.id
    )
    logger.info("User %s created series %s", current_user.id, series.id)
    return series


@router.post("/placeholder", response_model=SeriesPublic)
async def create_placeholder_series(store: StoreDep, current_user: CurrentUser) -> Any:
    return await asyncio.to_thread(crud.create_placeholder_series, store=store, owner_id=current_user.id)


@router.post("/suggestions", response_model=CollectionSuggestions)
async def suggest_series_metadata(
    gateway: GatewayDep, current_user: CurrentUser, body: SeriesSuggestionRequest
) -> Any:
    return await gateway.suggest_collection_metadata(
        name=body.titulo,
        price=body.preco,
        description=body.descricao,
        target_audience=body.publico_alvo,
    )


@router.get("/{series_id}", response_model=SeriesTree)
async def read_series(series: OwnedSeries, store: StoreDep) -> Any:
    return await asyncio.to_thread(crud.get_series_tree, store=store, series_id=series.id)


@router.patch("/{series_id}", response_model=SeriesPublic)
async def update_series(series: OwnedSeries, store: StoreDep, series_in: SeriesUpdate) -> Any:
    return await asyncio.to_thread(crud.update_series, store=store, series_id=series.id, series_in=series_in)


@router.delete("/{series_id}", response_model=Message)
async def delete_series(series: OwnedSeries, store: StoreDep) -> Any:
    await asyncio.to_thread(crud.delete_series, store=store, series_id=series.id)
    logger.info("Deleted series %s", series.id)
    return Message(message="Series deleted successfully")


# Modules

@router.post("/{series_id}/modulos", response_model=ModulePublic)
async def create_module(
    series: OwnedSeries, store: StoreDep, gateway: GatewayDep, current_user: CurrentUser, module_in: ModuleDraft
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    editor.open_module_form()
    return await editor.save_module(module_in)


@router.patch("/{series_id}/modulos/{module_id}", response_model=ModulePublic)
async def update_module(
    series: OwnedSeries,
    module_id: str,
    store: StoreDep,
    gateway: GatewayDep,
    current_user: CurrentUser,
    module_in: ModuleDraft,
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    editor.open_module_form(module_id)
    return await editor.save_module(module_in)


@router.delete("/{series_id}/modulos/{module_id}", response_model=ModulePublic)
async def delete_module(
    series: OwnedSeries,
    module_id: str,
    store: StoreDep,
    gateway: GatewayDep,
    current_user: CurrentUser,
    confirm: bool = False,
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    confirmation = editor.request_module_delete(module_id)
    if not confirm:
        raise HTTPException(
            status_code=409,
            detail={
                "warning": confirmation.warning,
                "module_id": confirmation.module_id,
                "module_title": confirmation.module_title,
                "tattoo_count": confirmation.tattoo_count,
            },
        )
    return await editor.confirm_delete()


# Tattoos

@router.post("/{series_id}/modulos/{module_id}/tatuagens", response_model=UploadReport)
async def upload_tattoos(
    series: OwnedSeries,
    module_id: str,
    files: list[UploadFile],
    store: StoreDep,
    gateway: GatewayDep,
    current_user: CurrentUser,
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    return await editor.upload_images(module_id, files)


@router.patch("/{series_id}/modulos/{module_id}/tatuagens/{tattoo_id}", response_model=TattooPublic)
async def update_tattoo(
    series: OwnedSeries,
    module_id: str,
    tattoo_id: str,
    store: StoreDep,
    gateway: GatewayDep,
    current_user: CurrentUser,
    tattoo_in: TattooUpdate,
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    module, _ = editor.tattoo(tattoo_id)
    if module.id != module_id:
        raise NotFound("Tattoo not found")
    editor.open_tattoo_form(tattoo_id)
    await editor.save_tattoo(tattoo_in)
    failed = await editor.flush_writes()
    if failed:
        raise PersistenceFailure(f"Could not save tattoo {tattoo_id}") from failed[0].error
    return await asyncio.to_thread(
        crud.get_tattoo, store=store, series_id=series.id, module_id=module_id, tattoo_id=tattoo_id
    )


@router.delete("/{series_id}/modulos/{module_id}/tatuagens/{tattoo_id}", response_model=Message)
async def delete_tattoo(series: OwnedSeries, module_id: str, tattoo_id: str, store: StoreDep) -> Any:
    await asyncio.to_thread(
        crud.delete_tattoo, store=store, series_id=series.id, module_id=module_id, tattoo_id=tattoo_id
    )
    return Message(message="Tattoo deleted successfully")


# Compilation

@router.post("/{series_id}/compile", response_model=CompiledCollection)
async def compile_series(
    series: OwnedSeries, store: StoreDep, gateway: GatewayDep, current_user: CurrentUser
) -> Any:
    editor = await _open_editor(series, store, gateway, current_user)
    outcome = await editor.compile()
    if outcome is None or not outcome.succeeded:
        raise HTTPException(status_code=502, detail=outcome.error if outcome else "Compilation discarded")
    return outcome.result


@router.get("/{series_id}/sales-link", response_model=Message)
async def read_sales_link(series: OwnedSeries) -> Any:
    return Message(message=views.sales_url(series.id))
