import asyncio
import logging

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from atelier.api.deps import StoreDep
from atelier.errors import NotFound
from atelier.public import assemble_book, assemble_series

router = APIRouter(tags=["public"])
logger = logging.getLogger(__name__)


@router.get("/series/{series_id}")
async def read_public_series(series_id: str, store: StoreDep) -> JSONResponse:
    try:
        series = await asyncio.to_thread(assemble_series, store=store, series_id=series_id)
    except NotFound as exc:
        return JSONResponse(status_code=404, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("Error fetching serie %s: %s", series_id, exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
    return JSONResponse(content=jsonable_encoder(series))


@router.get("/books/{book_id}")
async def read_public_book(book_id: str, store: StoreDep) -> JSONResponse:
    try:
        book = await asyncio.to_thread(assemble_book, store=store, book_id=book_id)
    except NotFound as exc:
        return JSONResponse(status_code=404, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("Error fetching book %s: %s", book_id, exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
    return JSONResponse(content=jsonable_encoder(book))
