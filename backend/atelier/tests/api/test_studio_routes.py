from datetime import datetime

from atelier.agent.artifacts import CollectionSuggestions
from atelier.errors import GenerationFailure

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _create_series(client, headers, titulo="Floral Set") -> dict:
    response = client.post(
        "/api/studio/series/",
        headers=headers,
        json={"titulo": titulo, "descricao": "Flores", "publico_alvo": "iniciantes"},
    )
    assert response.status_code == 200, response.text
    return response.json()


def _create_module(client, headers, series_id, titulo="Chapter 1") -> dict:
    response = client.post(
        f"/api/studio/series/{series_id}/modulos", headers=headers, json={"titulo": titulo, "descricao": ""}
    )
    assert response.status_code == 200, response.text
    return response.json()


def _upload(client, headers, series_id, module_id, *names):
    return client.post(
        f"/api/studio/series/{series_id}/modulos/{module_id}/tatuagens",
        headers=headers,
        files=[("files", (name, PNG_BYTES, "image/png")) for name in names],
    )


def test_studio_requires_sign_in(client):
    assert client.get("/api/studio/series/").status_code == 401


def test_create_series_and_read_dashboard(client, owner_headers):
    series = _create_series(client, owner_headers)
    assert series["autor_id"] == "owner-1"
    assert series["status"] == "rascunho"
    assert series["modulos_count"] == 0

    dashboard = client.get("/api/studio/series/", headers=owner_headers).json()

    assert [s["id"] for s in dashboard["series"]] == [series["id"]]
    assert dashboard["metrics"]["collections"] == 1


def test_blank_series_title_is_422(client, owner_headers):
    response = client.post("/api/studio/series/", headers=owner_headers, json={"titulo": "  "})
    assert response.status_code == 422
    assert response.json()["field"] == "titulo"


def test_placeholder_series(client, owner_headers):
    response = client.post("/api/studio/series/placeholder", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["titulo"] == "Nova Série (Copie e Edite)"


def test_other_users_cannot_open_a_series(client, owner_headers, stranger_headers):
    series = _create_series(client, owner_headers)

    response = client.get(f"/api/studio/series/{series['id']}", headers=stranger_headers)

    assert response.status_code == 403


def test_missing_series_is_404(client, owner_headers):
    assert client.get("/api/studio/series/nope", headers=owner_headers).status_code == 404


def test_module_upload_and_tree(client, owner_headers):
    series = _create_series(client, owner_headers)
    module = _create_module(client, owner_headers, series["id"])
    assert module["ordem"] == 1

    upload = _upload(client, owner_headers, series["id"], module["id"], "a.png", "b.png")
    assert upload.status_code == 200, upload.text
    assert len(upload.json()["created"]) == 2
    assert upload.json()["failed"] == []

    tree = client.get(f"/api/studio/series/{series['id']}", headers=owner_headers).json()
    assert tree["modulos_count"] == 1
    assert tree["tatuagens_count"] == 2
    assert tree["modulos"][0]["tatuagens_count"] == 2
    assert len(tree["modulos"][0]["tatuagens"]) == 2


def test_failed_analysis_is_reported_per_file(client, owner_headers, gateway):
    gateway.analyze_image.side_effect = GenerationFailure("Could not analyze this image.")
    series = _create_series(client, owner_headers)
    module = _create_module(client, owner_headers, series["id"])

    upload = _upload(client, owner_headers, series["id"], module["id"], "a.png")

    assert upload.status_code == 200
    assert upload.json()["created"] == []
    assert upload.json()["failed"] == [{"filename": "a.png", "error": "Could not analyze this image."}]


def test_module_delete_needs_confirmation(client, owner_headers):
    series = _create_series(client, owner_headers)
    module = _create_module(client, owner_headers, series["id"])
    _upload(client, owner_headers, series["id"], module["id"], "a.png")
    url = f"/api/studio/series/{series['id']}/modulos/{module['id']}"

    unconfirmed = client.delete(url, headers=owner_headers)
    assert unconfirmed.status_code == 409
    assert "Chapter 1" in unconfirmed.json()["detail"]["warning"]

    confirmed = client.delete(f"{url}?confirm=true", headers=owner_headers)
    assert confirmed.status_code == 200

    tree = client.get(f"/api/studio/series/{series['id']}", headers=owner_headers).json()
    assert tree["modulos_count"] == 0
    assert tree["tatuagens_count"] == 0
    assert tree["modulos"] == []


def test_edit_module_and_blank_title(client, owner_headers):
    series = _create_series(client, owner_headers)
    module = _create_module(client, owner_headers, series["id"])
    url = f"/api/studio/series/{series['id']}/modulos/{module['id']}"

    renamed = client.patch(url, headers=owner_headers, json={"titulo": "Rosas", "descricao": "Só rosas"})
    assert renamed.status_code == 200
    assert renamed.json()["titulo"] == "Rosas"

    blank = client.patch(url, headers=owner_headers, json={"titulo": ""})
    assert blank.status_code == 422


def test_edit_tattoo(client, owner_headers):
    series = _create_series(client, owner_headers)
    module = _create_module(client, owner_headers, series["id"])
    tattoo = _upload(client, owner_headers, series["id"], module["id"], "a.png").json()["created"][0]

    response = client.patch(
        f"/api/studio/series/{series['id']}/modulos/{module['id']}/tatuagens/{tattoo['id']}",
        headers=owner_headers,
        json={"titulo": "Rosa Nova", "tags_seo": ["rosa"]},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["titulo"] == "Rosa Nova"
    assert body["tags_seo"] == ["rosa"]
    assert body["tema"] == tattoo["tema"]
    assert datetime.fromisoformat(body["data_atualizacao"]) > datetime.fromisoformat(tattoo["data_atualizacao"])


def test_update_pricing_and_delete_series(client, owner_headers):
    series = _create_series(client, owner_headers)

    updated = client.patch(
        f"/api/studio/series/{series['id']}",
        headers=owner_headers,
        json={"preco": 59.9, "preco_promocional": 49.9, "status": "publicada"},
    )
    assert updated.status_code == 200
    assert updated.json()["status"] == "publicada"

    bad = client.patch(f"/api/studio/series/{series['id']}", headers=owner_headers, json={"preco": -1})
    assert bad.status_code == 422

    deleted = client.delete(f"/api/studio/series/{series['id']}", headers=owner_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/series/{series['id']}").status_code == 404


def test_null_for_required_series_field_is_422_and_series_stays_readable(client, owner_headers):
    series = _create_series(client, owner_headers)

    for field in ("descricao", "publico_alvo", "preco", "status", "capa_url", "tags_gerais"):
        response = client.patch(f"/api/studio/series/{series['id']}", headers=owner_headers, json={field: None})
        assert response.status_code == 422, field
        assert response.json()["field"] == field

    assert client.get("/api/studio/series/", headers=owner_headers).status_code == 200
    assert client.get(f"/api/browse/landing/{series['id']}").status_code == 200
    tree = client.get(f"/api/studio/series/{series['id']}", headers=owner_headers)
    assert tree.status_code == 200
    assert tree.json()["descricao"] == "Flores"


def test_promotional_price_can_be_cleared(client, owner_headers):
    series = _create_series(client, owner_headers)
    client.patch(
        f"/api/studio/series/{series['id']}", headers=owner_headers, json={"preco": 59.9, "preco_promocional": 49.9}
    )

    response = client.patch(
        f"/api/studio/series/{series['id']}", headers=owner_headers, json={"preco_promocional": None}
    )

    assert response.status_code == 200
    assert response.json()["preco_promocional"] is None
    assert response.json()["preco"] == 59.9


def test_suggestions(client, owner_headers, gateway):
    gateway.suggest_collection_metadata.return_value = CollectionSuggestions(
        suggested_title="Jardim Secreto",
        improved_description="Flores delicadas.",
        suggested_structure="Módulo 1: Rosas",
        sales_pitch="Leve flores na pele.",
    )

    response = client.post(
        "/api/studio/series/suggestions",
        headers=owner_headers,
        json={"titulo": "Flores", "preco": 10, "descricao": "flores", "publico_alvo": "todos"},
    )

    assert response.status_code == 200
    assert response.json()["suggested_title"] == "Jardim Secreto"
    gateway.suggest_collection_metadata.assert_awaited_once_with(
        name="Flores", price=10, description="flores", target_audience="todos"
    )


def test_compile(client, owner_headers):
    series = _create_series(client, owner_headers)
    for title in ("Chapter 1", "Chapter 2"):
        module = _create_module(client, owner_headers, series["id"], title)
        _upload(client, owner_headers, series["id"], module["id"], "a.png")

    response = client.post(f"/api/studio/series/{series['id']}/compile", headers=owner_headers)

    assert response.status_code == 200
    assert response.json()["marketing_copies"]
    assert isinstance(response.json()["web_version_url"], str)


def test_compile_failure_is_502(client, owner_headers, gateway):
    gateway.compile_collection.side_effect = GenerationFailure("Could not compile this collection.")
    series = _create_series(client, owner_headers)

    response = client.post(f"/api/studio/series/{series['id']}/compile", headers=owner_headers)

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not compile this collection."


def test_sales_link(client, owner_headers):
    series = _create_series(client, owner_headers)
    response = client.get(f"/api/studio/series/{series['id']}/sales-link", headers=owner_headers)
    assert response.json()["message"].endswith(f"/colecoes/{series['id']}")
