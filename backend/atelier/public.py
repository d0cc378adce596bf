"""Assemble nested series and legacy books for anonymous readers.

Both assemblers read the top document, then every child module, then every
image under each module, and return one JSON-ready dict. Stored fields pass
through untouched.
"""
import logging
from typing import Any

from atelier.errors import NotFound
from atelier.store import CREATED_FIELD, DocumentSnapshot, DocumentStore
from atelier.store import paths

logger = logging.getLogger(__name__)


def _children(store: DocumentStore, collection_path: str) -> list[DocumentSnapshot]:
    return store.list_documents(collection_path, order_by=CREATED_FIELD)


def assemble_series(*, store: DocumentStore, series_id: str) -> dict[str, Any]:
    snapshot = store.get(paths.series_path(series_id))
    if snapshot is None:
        raise NotFound("Serie not found", path=paths.series_path(series_id))

    modulos = []
    for module in _children(store, paths.modules_path(series_id)):
        tatuagens = [
            tattoo.to_dict() for tattoo in _children(store, paths.tattoos_path(series_id, module.id))
        ]
        modulos.append({**module.to_dict(), "tatuagens": tatuagens})

    logger.debug("Assembled series %s with %s module(s)", series_id, len(modulos))
    return {**snapshot.to_dict(), "modulos": modulos}


def _embedded_modules(raw: Any) -> list[dict[str, Any]]:
    # Older books keep modules (and their images) as arrays on the book itself.
    if not isinstance(raw, list):
        return []
    modules = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            continue
        module_id = str(item.get("id") or index)
        images = [
            {**image, "id": str(image.get("id") or position), "moduleId": image.get("moduleId", module_id)}
            for position, image in enumerate(item.get("images") or [])
            if isinstance(image, dict)
        ]
        modules.append(
            {
                "id": module_id,
                "name": item.get("name", ""),
                "description": item.get("description", ""),
                "images": images,
            }
        )
    return modules


def assemble_book(*, store: DocumentStore, book_id: str) -> dict[str, Any]:
    snapshot = store.get(paths.book_path(book_id))
    if snapshot is None:
        raise NotFound("Book not found", path=paths.book_path(book_id))

    module_snapshots = _children(store, paths.book_modules_path(book_id))
    if module_snapshots:
        modules = [
            {
                "id": module.id,
                "name": module.data.get("name", ""),
                "description": module.data.get("description", ""),
                "images": [
                    image.to_dict() for image in _children(store, paths.book_images_path(book_id, module.id))
                ],
            }
            for module in module_snapshots
        ]
    else:
        modules = _embedded_modules(snapshot.data.get("modules"))

    book = {key: value for key, value in snapshot.to_dict().items() if key != "modules"}
    book["modules"] = modules
    return book
