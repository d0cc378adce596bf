"""View models for the owner dashboard, the public browse page and the landing page."""
from sqlmodel import SQLModel

from atelier import crud
from atelier.core.config import settings
from atelier.models import SeriesPublic, SeriesTree, TattooPublic
from atelier.public import assemble_series
from atelier.store import CREATED_FIELD, UPDATED_FIELD, DocumentStore


class DashboardMetrics(SQLModel):
    collections: int = 0
    published: int = 0
    modules: int = 0
    tattoos: int = 0


class DashboardView(SQLModel):
    series: list[SeriesPublic]
    metrics: DashboardMetrics


class BrowseView(SQLModel):
    trending: list[SeriesPublic]
    new_releases: list[SeriesPublic]


class LandingModule(SQLModel):
    id: str
    titulo: str
    descricao: str
    tatuagens_count: int


class LandingPricing(SQLModel):
    preco: float
    preco_promocional: float | None = None
    price_label: str
    promo_label: str | None = None


class LandingView(SQLModel):
    series_id: str
    titulo: str
    descricao: str
    publico_alvo: str
    capa_url: str
    tags: list[str]
    module_count: int
    tattoo_count: int
    modules: list[LandingModule]
    gallery: list[TattooPublic]
    pricing: LandingPricing
    sales_url: str


def sales_url(series_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/colecoes/{series_id}"


def format_price(value: float) -> str:
    """Brazilian real, e.g. ``R$ 1.299,90``."""
    whole, cents = f"{value:,.2f}".split(".")
    return f"R$ {whole.replace(',', '.')},{cents}"


def dashboard(*, store: DocumentStore, owner_id: str) -> DashboardView:
    series = crud.list_owned_series(store=store, owner_id=owner_id)
    metrics = DashboardMetrics(
        collections=len(series),
        published=sum(1 for s in series if s.status == "publicada"),
        modules=sum(s.modulos_count for s in series),
        tattoos=sum(s.tatuagens_count for s in series),
    )
    return DashboardView(series=series, metrics=metrics)


def browse(*, store: DocumentStore, limit: int | None = None) -> BrowseView:
    limit = limit or settings.BROWSE_CAROUSEL_SIZE
    return BrowseView(
        trending=crud.list_published_series(store=store, order_by=CREATED_FIELD, limit=limit),
        new_releases=crud.list_published_series(store=store, order_by=UPDATED_FIELD, limit=limit),
    )


def landing(*, store: DocumentStore, series_id: str) -> LandingView:
    # Raises NotFound for an unknown series; callers render the not-found page.
    series = SeriesTree.model_validate(assemble_series(store=store, series_id=series_id))

    # Counts come from the assembled tree rather than the stored counters.
    modules = [
        LandingModule(
            id=module.id,
            titulo=module.titulo,
            descricao=module.descricao,
            tatuagens_count=len(module.tatuagens),
        )
        for module in series.modulos
    ]
    tattoos = [tattoo for module in series.modulos for tattoo in module.tatuagens]

    has_promo = series.preco_promocional is not None and series.preco_promocional < series.preco
    pricing = LandingPricing(
        preco=series.preco,
        preco_promocional=series.preco_promocional if has_promo else None,
        price_label=format_price(series.preco),
        promo_label=format_price(series.preco_promocional) if has_promo else None,
    )

    return LandingView(
        series_id=series.id,
        titulo=series.titulo,
        descricao=series.descricao,
        publico_alvo=series.publico_alvo,
        capa_url=series.capa_url,
        tags=series.tags_gerais,
        module_count=len(modules),
        tattoo_count=len(tattoos),
        modules=modules,
        gallery=tattoos[: settings.LANDING_GALLERY_SIZE],
        pricing=pricing,
        sales_url=sales_url(series.id),
    )
