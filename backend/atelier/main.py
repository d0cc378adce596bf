import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from atelier.agent.gateway import ContentGateway
from atelier.api.main import api_router
from atelier.api.routes import pages
from atelier.auth import AuthGate, IdentityProvider
from atelier.core.config import settings
from atelier.core.db import engine, init_db
from atelier.errors import (
    AuthenticationFailed,
    EditorStateError,
    GenerationFailure,
    NotFound,
    PersistenceFailure,
    ValidationFailure,
)
from atelier.store import DocumentStore

logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})

    @app.exception_handler(GenerationFailure)
    async def generation_failure_handler(request: Request, exc: GenerationFailure) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(EditorStateError)
    async def editor_state_handler(request: Request, exc: EditorStateError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationFailed)
    async def authentication_failed_handler(request: Request, exc: AuthenticationFailed) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc)})


def create_app(
    *,
    store: DocumentStore | None = None,
    gateway: ContentGateway | None = None,
    identity_provider: IdentityProvider | None = None,
) -> FastAPI:
    store = store or DocumentStore(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(store.engine)
        logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
        yield
        await store.drain()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.gateway = gateway or ContentGateway()
    app.state.auth_gate = AuthGate(store=store, provider=identity_provider)

    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.include_router(pages.router)
    return app


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
