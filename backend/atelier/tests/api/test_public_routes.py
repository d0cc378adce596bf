from unittest.mock import patch

from atelier import crud
from atelier.models import ModuleDraft, SeriesCreate
from atelier.store import paths
from atelier.tests.conftest import OWNER


def _seed_series(store, module_tattoos: list[int]) -> tuple[str, list[str], list[list[str]]]:
    series = crud.create_series(store=store, series_in=SeriesCreate(titulo="Floral Set"), owner_id=OWNER.id)
    module_ids, tattoo_ids = [], []
    for index, count in enumerate(module_tattoos):
        module = crud.create_module(
            store=store, series_id=series.id, module_in=ModuleDraft(titulo=f"Chapter {index + 1}")
        )
        module_ids.append(module.id)
        tattoo_ids.append(
            [
                crud.create_tattoo(
                    store=store,
                    series_id=series.id,
                    module_id=module.id,
                    data={"titulo": f"Tattoo {index}.{n}", "tema": "floral", "origem": "manual"},
                ).id
                for n in range(count)
            ]
        )
    return series.id, module_ids, tattoo_ids


def test_missing_series_is_404_without_partial_data(client):
    response = client.get("/api/series/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "Serie not found"}


def test_series_is_assembled_in_creation_order(client, store):
    series_id, module_ids, tattoo_ids = _seed_series(store, [3, 0])

    response = client.get(f"/api/series/{series_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == series_id
    assert body["titulo"] == "Floral Set"
    assert body["modulos_count"] == 2
    assert [m["id"] for m in body["modulos"]] == module_ids
    assert [[t["id"] for t in m["tatuagens"]] for m in body["modulos"]] == tattoo_ids
    assert body["modulos"][0]["tatuagens"][0]["tema"] == "floral"
    assert "data_criacao" in body["modulos"][0]["tatuagens"][0]


def test_unexpected_failure_is_500(client):
    with patch("atelier.api.routes.public.assemble_series", side_effect=RuntimeError("disk on fire")):
        response = client.get("/api/series/anything")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


def test_book_with_module_subcollections(client, store):
    store.create(paths.BOOKS, {"name": "Old Book", "shortDescription": "legacy", "price": 10}, document_id="b1")
    module_id = store.create(paths.book_modules_path("b1"), {"name": "Intro", "description": "first"})
    store.create(paths.book_images_path("b1", module_id), {"title": "img", "sourceUrl": "https://x/1.png"})

    response = client.get("/api/books/b1")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Old Book"
    assert body["modules"][0]["name"] == "Intro"
    assert body["modules"][0]["images"][0]["sourceUrl"] == "https://x/1.png"


def test_book_with_embedded_modules(client, store):
    store.create(
        paths.BOOKS,
        {
            "name": "Flat Book",
            "modules": [
                {"id": "m1", "name": "One", "description": "d", "images": [{"id": "i1", "title": "a"}]},
                {"name": "Two", "images": []},
            ],
        },
        document_id="b2",
    )

    body = client.get("/api/books/b2").json()

    assert [m["name"] for m in body["modules"]] == ["One", "Two"]
    assert body["modules"][0]["images"] == [{"id": "i1", "title": "a", "moduleId": "m1"}]
    assert body["modules"][1]["id"] == "1"


def test_missing_book_is_404(client):
    response = client.get("/api/books/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Book not found"}
