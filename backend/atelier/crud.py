import re
from typing import Any

from atelier.agent.artifacts import ImageAnalysis
from atelier.errors import NotFound, ValidationFailure
from atelier.models import (
    ModuleDraft,
    ModulePublic,
    ModuleTree,
    SeriesCreate,
    SeriesPublic,
    SeriesTree,
    SeriesUpdate,
    TattooPublic,
    UserProfile,
)
from atelier.store import CREATED_FIELD, UPDATED_FIELD, DocumentStore, PendingWrite, WriteBatch, increment
from atelier.store import paths

PLACEHOLDER_SERIES = {
    "titulo": "Nova Série (Copie e Edite)",
    "descricao": "Comece com este modelo e personalize sua nova coleção de tatuagens.",
    "publico_alvo": "Amantes de tatuagem",
    "preco": 0,
    "status": "rascunho",
    "tags_gerais": ["nova", "tatuagem"],
    "capa_url": "https://picsum.photos/seed/placeholder-cover/600/800",
}


def cover_placeholder_url(title: str) -> str:
    seed = re.sub(r"\s+", "-", title.strip()) or "cover"
    return f"https://picsum.photos/seed/{seed}/600/800"


def require_title(value: str | None, *, message: str) -> str:
    title = (value or "").strip()
    if not title:
        raise ValidationFailure("titulo", message)
    return title


# Series

def get_series(*, store: DocumentStore, series_id: str) -> SeriesPublic:
    snapshot = store.get(paths.series_path(series_id))
    if snapshot is None:
        raise NotFound("Serie not found", path=paths.series_path(series_id))
    return SeriesPublic.model_validate(snapshot.to_dict())


def create_series(*, store: DocumentStore, series_in: SeriesCreate, owner_id: str) -> SeriesPublic:
    title = require_title(series_in.titulo, message="O título da coleção não pode ser vazio.")
    series_id = store.create(
        paths.SERIES,
        {
            "titulo": title,
            "descricao": series_in.descricao,
            "publico_alvo": series_in.publico_alvo,
            "autor_id": owner_id,
            "status": "rascunho",
            "preco": 0,
            "tags_gerais": [],
            "capa_url": cover_placeholder_url(title),
            "modulos_count": 0,
            "tatuagens_count": 0,
        },
    )
    return get_series(store=store, series_id=series_id)


def create_placeholder_series(*, store: DocumentStore, owner_id: str) -> SeriesPublic:
    series_id = store.create(
        paths.SERIES,
        {**PLACEHOLDER_SERIES, "autor_id": owner_id, "modulos_count": 0, "tatuagens_count": 0},
    )
    return get_series(store=store, series_id=series_id)


NULLABLE_SERIES_FIELDS = {"preco_promocional"}


def series_changes(series_in: SeriesUpdate) -> dict[str, Any]:
    changes = series_in.model_dump(exclude_unset=True)
    for name, value in changes.items():
        if value is None and name not in NULLABLE_SERIES_FIELDS and name != "titulo":
            raise ValidationFailure(name, f"O campo {name} não pode ser nulo.")
    if "titulo" in changes:
        changes["titulo"] = require_title(changes["titulo"], message="O título é obrigatório.")
    return changes


def update_series(*, store: DocumentStore, series_id: str, series_in: SeriesUpdate) -> SeriesPublic:
    changes = series_changes(series_in)
    store.update(paths.series_path(series_id), changes)
    return get_series(store=store, series_id=series_id)


def delete_series(*, store: DocumentStore, series_id: str) -> None:
    get_series(store=store, series_id=series_id)
    store.delete(paths.series_path(series_id), recursive=True)


def list_owned_series(*, store: DocumentStore, owner_id: str, limit: int | None = None) -> list[SeriesPublic]:
    snapshots = store.list_documents(
        paths.SERIES,
        where={"autor_id": owner_id},
        order_by=UPDATED_FIELD,
        descending=True,
        limit=limit,
    )
    return [SeriesPublic.model_validate(s.to_dict()) for s in snapshots]


def list_published_series(
    *, store: DocumentStore, order_by: str = CREATED_FIELD, limit: int | None = None
) -> list[SeriesPublic]:
    snapshots = store.list_documents(
        paths.SERIES,
        where={"status": "publicada"},
        order_by=order_by,
        descending=True,
        limit=limit,
    )
    return [SeriesPublic.model_validate(s.to_dict()) for s in snapshots]


# Modules

def get_module(*, store: DocumentStore, series_id: str, module_id: str) -> ModulePublic:
    snapshot = store.get(paths.module_path(series_id, module_id))
    if snapshot is None:
        raise NotFound("Module not found", path=paths.module_path(series_id, module_id))
    return ModulePublic.model_validate(snapshot.to_dict())


def list_modules(*, store: DocumentStore, series_id: str) -> list[ModulePublic]:
    snapshots = store.list_documents(paths.modules_path(series_id), order_by=CREATED_FIELD)
    return [ModulePublic.model_validate(s.to_dict()) for s in snapshots]


def create_module(*, store: DocumentStore, series_id: str, module_in: ModuleDraft) -> ModulePublic:
    title = require_title(module_in.titulo, message="O título do módulo não pode ser vazio.")
    series = get_series(store=store, series_id=series_id)

    batch = store.batch()
    module_id = batch.create(
        paths.modules_path(series_id),
        {
            "titulo": title,
            "descricao": module_in.descricao,
            "ordem": series.modulos_count + 1,
            "tatuagens_count": 0,
        },
    )
    batch.update(paths.series_path(series_id), {"modulos_count": increment(1)})
    batch.commit()
    return get_module(store=store, series_id=series_id, module_id=module_id)


def update_module(
    *, store: DocumentStore, series_id: str, module_id: str, module_in: ModuleDraft
) -> ModulePublic:
    title = require_title(module_in.titulo, message="O título do módulo não pode ser vazio.")
    batch = store.batch()
    batch.update(
        paths.module_path(series_id, module_id),
        {"titulo": title, "descricao": module_in.descricao},
    )
    # Editing never changes the module counter; only the parent's updated-at moves.
    batch.update(paths.series_path(series_id), {})
    batch.commit()
    return get_module(store=store, series_id=series_id, module_id=module_id)


def delete_module(*, store: DocumentStore, series_id: str, module_id: str) -> ModulePublic:
    module = get_module(store=store, series_id=series_id, module_id=module_id)
    batch = store.batch()
    batch.delete(paths.module_path(series_id, module_id), recursive=True)
    batch.update(
        paths.series_path(series_id),
        {
            "modulos_count": increment(-1),
            "tatuagens_count": increment(-module.tatuagens_count),
        },
    )
    batch.commit()
    return module


# Tattoos

def tattoo_from_analysis(analysis: ImageAnalysis, *, image_ref: str, author_id: str) -> dict[str, Any]:
    """Tattoo document built from an image analysis; uncovered fields get defaults."""
    return {
        "capa_url": image_ref,
        "titulo": analysis.suggested_name,
        "descricao_contextual": analysis.description,
        "tema": analysis.theme,
        "estilos": [analysis.style] if analysis.style else [],
        "significado_literal": analysis.literal_meaning,
        "significado_subjetivo": analysis.subjective_meaning,
        "cores_usadas": list(analysis.colors_used),
        "elementos_presentes": list(analysis.elements_present),
        "tom_emocional": analysis.emotional_tone,
        "local_sugerido": analysis.suggested_placement,
        "simbolismo": analysis.symbolism,
        "referencia_cultural": analysis.cultural_reference,
        "tags_seo": list(analysis.seo_tags),
        "legenda_instagram": analysis.instagram_caption,
        "curtidas": 0,
        "comentarios_count": 0,
        "compartilhamentos": 0,
        "origem": "ia",
        "autor_id": author_id,
    }


def get_tattoo(*, store: DocumentStore, series_id: str, module_id: str, tattoo_id: str) -> TattooPublic:
    path = paths.tattoo_path(series_id, module_id, tattoo_id)
    snapshot = store.get(path)
    if snapshot is None:
        raise NotFound("Tattoo not found", path=path)
    return TattooPublic.model_validate(snapshot.to_dict())


def list_tattoos(*, store: DocumentStore, series_id: str, module_id: str) -> list[TattooPublic]:
    snapshots = store.list_documents(paths.tattoos_path(series_id, module_id), order_by=CREATED_FIELD)
    return [TattooPublic.model_validate(s.to_dict()) for s in snapshots]


def create_tattoo(
    *, store: DocumentStore, series_id: str, module_id: str, data: dict[str, Any]
) -> TattooPublic:
    batch = store.batch()
    tattoo_id = batch.create(paths.tattoos_path(series_id, module_id), data)
    batch.update(paths.module_path(series_id, module_id), {"tatuagens_count": increment(1)})
    batch.update(paths.series_path(series_id), {"tatuagens_count": increment(1)})
    batch.commit()
    return get_tattoo(store=store, series_id=series_id, module_id=module_id, tattoo_id=tattoo_id)


def tattoo_update_batch(
    *, store: DocumentStore, series_id: str, module_id: str, tattoo_id: str, changes: dict[str, Any]
) -> WriteBatch:
    batch = store.batch()
    batch.update(paths.tattoo_path(series_id, module_id, tattoo_id), changes)
    batch.update(paths.module_path(series_id, module_id), {})
    batch.update(paths.series_path(series_id), {})
    return batch


def delete_tattoo(*, store: DocumentStore, series_id: str, module_id: str, tattoo_id: str) -> None:
    get_tattoo(store=store, series_id=series_id, module_id=module_id, tattoo_id=tattoo_id)
    batch = store.batch()
    batch.delete(paths.tattoo_path(series_id, module_id, tattoo_id))
    batch.update(paths.module_path(series_id, module_id), {"tatuagens_count": increment(-1)})
    batch.update(paths.series_path(series_id), {"tatuagens_count": increment(-1)})
    batch.commit()


# Nested reads

def get_series_tree(*, store: DocumentStore, series_id: str) -> SeriesTree:
    series = get_series(store=store, series_id=series_id)
    modules = [
        ModuleTree(
            **module.model_dump(),
            tatuagens=list_tattoos(store=store, series_id=series_id, module_id=module.id),
        )
        for module in list_modules(store=store, series_id=series_id)
    ]
    return SeriesTree(**series.model_dump(), modulos=modules)


# Users

def get_user_profile(*, store: DocumentStore, user_id: str) -> UserProfile | None:
    snapshot = store.get(paths.user_path(user_id))
    if snapshot is None:
        return None
    return UserProfile.model_validate(snapshot.to_dict())


def upsert_user_profile_nowait(*, store: DocumentStore, profile: UserProfile) -> PendingWrite:
    return store.set_nowait(paths.user_path(profile.id), profile.model_dump(mode="json"), merge=True)
