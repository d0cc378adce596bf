"""Path helpers for the hierarchical document layout.

Collections and documents alternate: ``series`` is a collection,
``series/{id}`` a document, ``series/{id}/modulos`` its module collection.
"""

SERIES = "series"
MODULES = "modulos"
TATTOOS = "tatuagens"
USERS = "users"
SESSIONS = "sessions"
BOOKS = "ai_books"
BOOK_MODULES = "modules"
BOOK_IMAGES = "images"


def _segments(path: str) -> list[str]:
    segments = [segment for segment in (path or "").strip("/").split("/")]
    if not segments or any(not segment for segment in segments):
        raise ValueError(f"Invalid document path: {path!r}")
    return segments


def is_document_path(path: str) -> bool:
    return len(_segments(path)) % 2 == 0


def validate_document_path(path: str) -> str:
    if not is_document_path(path):
        raise ValueError(f"Expected a document path, got collection path {path!r}")
    return "/".join(_segments(path))


def validate_collection_path(path: str) -> str:
    if is_document_path(path):
        raise ValueError(f"Expected a collection path, got document path {path!r}")
    return "/".join(_segments(path))


def split_document_path(path: str) -> tuple[str, str]:
    """Return ``(collection_path, document_id)`` for a document path."""
    segments = _segments(validate_document_path(path))
    return "/".join(segments[:-1]), segments[-1]


def join(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts)


def series_path(series_id: str) -> str:
    return join(SERIES, series_id)


def modules_path(series_id: str) -> str:
    return join(SERIES, series_id, MODULES)


def module_path(series_id: str, module_id: str) -> str:
    return join(modules_path(series_id), module_id)


def tattoos_path(series_id: str, module_id: str) -> str:
    return join(module_path(series_id, module_id), TATTOOS)


def tattoo_path(series_id: str, module_id: str, tattoo_id: str) -> str:
    return join(tattoos_path(series_id, module_id), tattoo_id)


def user_path(user_id: str) -> str:
    return join(USERS, user_id)


def session_path(session_id: str) -> str:
    return join(SESSIONS, session_id)


def book_path(book_id: str) -> str:
    return join(BOOKS, book_id)


def book_modules_path(book_id: str) -> str:
    return join(BOOKS, book_id, BOOK_MODULES)


def book_images_path(book_id: str, module_id: str) -> str:
    return join(book_modules_path(book_id), module_id, BOOK_IMAGES)
