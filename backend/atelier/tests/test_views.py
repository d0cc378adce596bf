from atelier import crud, views
from atelier.core.config import settings
from atelier.models import ModuleDraft, SeriesCreate, SeriesUpdate
from atelier.tests.conftest import OWNER, STRANGER


def test_format_price():
    assert views.format_price(0) == "R$ 0,00"
    assert views.format_price(49.9) == "R$ 49,90"
    assert views.format_price(1299.9) == "R$ 1.299,90"


def test_dashboard_only_counts_own_series(store):
    mine = crud.create_series(store=store, series_in=SeriesCreate(titulo="Mine"), owner_id=OWNER.id)
    crud.create_series(store=store, series_in=SeriesCreate(titulo="Theirs"), owner_id=STRANGER.id)
    module = crud.create_module(store=store, series_id=mine.id, module_in=ModuleDraft(titulo="M"))
    crud.create_tattoo(store=store, series_id=mine.id, module_id=module.id, data={"titulo": "t"})
    crud.update_series(store=store, series_id=mine.id, series_in=SeriesUpdate(status="publicada"))

    dashboard = views.dashboard(store=store, owner_id=OWNER.id)

    assert [s.titulo for s in dashboard.series] == ["Mine"]
    assert dashboard.metrics.collections == 1
    assert dashboard.metrics.published == 1
    assert dashboard.metrics.modules == 1
    assert dashboard.metrics.tattoos == 1


def test_dashboard_orders_by_last_update(store):
    first = crud.create_series(store=store, series_in=SeriesCreate(titulo="First"), owner_id=OWNER.id)
    crud.create_series(store=store, series_in=SeriesCreate(titulo="Second"), owner_id=OWNER.id)
    crud.update_series(store=store, series_id=first.id, series_in=SeriesUpdate(descricao="edited"))

    assert [s.titulo for s in views.dashboard(store=store, owner_id=OWNER.id).series] == ["First", "Second"]


def test_landing_gallery_is_capped_and_promo_needs_a_discount(store, monkeypatch):
    monkeypatch.setattr(settings, "LANDING_GALLERY_SIZE", 2)
    series = crud.create_series(store=store, series_in=SeriesCreate(titulo="Floral"), owner_id=OWNER.id)
    crud.update_series(
        store=store, series_id=series.id, series_in=SeriesUpdate(preco=30, preco_promocional=45)
    )
    module = crud.create_module(store=store, series_id=series.id, module_in=ModuleDraft(titulo="M"))
    for n in range(3):
        crud.create_tattoo(store=store, series_id=series.id, module_id=module.id, data={"titulo": f"t{n}"})

    landing = views.landing(store=store, series_id=series.id)

    assert landing.tattoo_count == 3
    assert [t.titulo for t in landing.gallery] == ["t0", "t1"]
    assert landing.pricing.promo_label is None
    assert landing.pricing.price_label == "R$ 30,00"
