import asyncio
import base64
import logging
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from atelier import crud
from atelier.agent.artifacts import CompiledCollection, ModuleCompilationInput
from atelier.agent.gateway import ContentGateway
from atelier.core.config import settings
from atelier.editor.state import EditorMode, EditorState, EditorStateMachine
from atelier.errors import GenerationFailure, NotFound, ValidationFailure
from atelier.models import (
    ModuleDraft,
    ModulePublic,
    ModuleTree,
    SeriesTree,
    SeriesUpdate,
    TattooForm,
    TattooPublic,
    TattooUpdate,
    UserProfile,
)
from atelier.store import DocumentStore, PendingWrite, WriteTracker
from atelier.store import paths

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    """Anything that behaves like an uploaded file (FastAPI's ``UploadFile`` does)."""

    filename: str | None
    content_type: str | None
    size: int | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class UploadFailure:
    filename: str
    error: str


@dataclass
class UploadReport:
    created: list[TattooPublic] = field(default_factory=list)
    failed: list[UploadFailure] = field(default_factory=list)


@dataclass
class DeleteConfirmation:
    module_id: str
    module_title: str
    tattoo_count: int
    warning: str


@dataclass
class CompilationOutcome:
    result: CompiledCollection | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class CollectionEditor:
    """In-memory editing session for one series and its modules and tattoos.

    Local state is updated as soon as an operation is accepted. Structural
    changes (modules, uploads, deletes) are written in blocking batches that
    keep the denormalized counters in step; metadata edits are non-blocking
    and tracked in :attr:`writes` until the store confirms or rejects them.
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        gateway: ContentGateway,
        series: SeriesTree,
        user: UserProfile,
        max_concurrency: int | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.series = series
        self.user = user
        self.writes = WriteTracker()
        self.last_compilation: CompilationOutcome | None = None
        self._machine = EditorStateMachine()
        self._ai_slots = asyncio.Semaphore(max(1, max_concurrency or settings.AI_MAX_CONCURRENCY))
        self._compile_token: object | None = None

    @classmethod
    async def open(
        cls,
        *,
        store: DocumentStore,
        gateway: ContentGateway,
        series_id: str,
        user: UserProfile,
        max_concurrency: int | None = None,
    ) -> "CollectionEditor":
        series = await asyncio.to_thread(crud.get_series_tree, store=store, series_id=series_id)
        return cls(store=store, gateway=gateway, series=series, user=user, max_concurrency=max_concurrency)

    @property
    def state(self) -> EditorState:
        return self._machine.state

    @property
    def mode(self) -> EditorMode:
        return self._machine.mode

    # ---------- Lookups ----------

    def module(self, module_id: str) -> ModuleTree:
        for module in self.series.modulos:
            if module.id == module_id:
                return module
        raise NotFound("Module not found", path=paths.module_path(self.series.id, module_id))

    def tattoo(self, tattoo_id: str) -> tuple[ModuleTree, TattooPublic]:
        for module in self.series.modulos:
            for tattoo in module.tatuagens:
                if tattoo.id == tattoo_id:
                    return module, tattoo
        raise NotFound("Tattoo not found")

    def cancel(self) -> None:
        """Close the open module form, tattoo form or delete confirmation."""
        self._machine.require(
            EditorMode.EDITING_MODULE, EditorMode.EDITING_TATTOO, EditorMode.CONFIRMING_DELETE
        )
        self._machine.close()

    # ---------- Uploads ----------

    async def upload_images(self, module_id: str, files: Sequence[ImageSource]) -> UploadReport:
        """Analyze and persist every file; a failing file is skipped, never fatal."""
        self.module(module_id)
        if not files:
            return UploadReport()

        self._machine.begin_uploads(len(files))
        outcomes = await asyncio.gather(*(self._upload_one(module_id, file) for file in files))

        report = UploadReport()
        for outcome in outcomes:
            if isinstance(outcome, UploadFailure):
                report.failed.append(outcome)
            else:
                report.created.append(outcome)
        logger.info(
            "Uploaded %s image(s) to module %s of series %s (%s failed)",
            len(report.created), module_id, self.series.id, len(report.failed),
        )
        return report

    async def _upload_one(self, module_id: str, file: ImageSource) -> TattooPublic | UploadFailure:
        filename = file.filename or "image"
        try:
            data_uri = await self._read_data_uri(file)
            async with self._ai_slots:
                analysis = await self.gateway.analyze_image(data_uri)
            tattoo = await asyncio.to_thread(
                crud.create_tattoo,
                store=self.store,
                series_id=self.series.id,
                module_id=module_id,
                data=crud.tattoo_from_analysis(analysis, image_ref=data_uri, author_id=self.user.id),
            )
        except Exception as exc:
            logger.warning("Skipping upload %s for module %s: %s", filename, module_id, exc)
            return UploadFailure(filename=filename, error=str(exc) or exc.__class__.__name__)
        finally:
            self._machine.finish_upload()

        module = self.module(module_id)
        module.tatuagens.append(tattoo)
        module.tatuagens_count += 1
        self.series.tatuagens_count += 1
        return tattoo

    @staticmethod
    async def _read_data_uri(file: ImageSource) -> str:
        limit = settings.MAX_IMAGE_BYTES
        declared = getattr(file, "size", None)
        if declared is not None and declared > limit:
            raise ValidationFailure("file", "O arquivo excede o tamanho máximo permitido.")
        content = await file.read(limit + 1)
        if not content:
            raise ValidationFailure("file", "O arquivo está vazio.")
        if len(content) > limit:
            raise ValidationFailure("file", "O arquivo excede o tamanho máximo permitido.")
        content_type = file.content_type or mimetypes.guess_type(file.filename or "")[0] or ""
        if not content_type.startswith("image/"):
            raise ValidationFailure("file", f"Tipo de arquivo não suportado: {content_type or 'desconhecido'}")
        return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"

    # ---------- Modules ----------

    def open_module_form(self, module_id: str | None = None) -> ModuleDraft:
        draft = ModuleDraft()
        if module_id is not None:
            module = self.module(module_id)
            draft = ModuleDraft(titulo=module.titulo, descricao=module.descricao)
        self._machine.open(EditorMode.EDITING_MODULE, module_id=module_id)
        return draft

    async def save_module(self, draft: ModuleDraft) -> ModulePublic:
        self._machine.require(EditorMode.EDITING_MODULE)
        crud.require_title(draft.titulo, message="O título do módulo não pode ser vazio.")
        module_id = self.state.module_id

        if module_id is None:
            saved = await asyncio.to_thread(
                crud.create_module, store=self.store, series_id=self.series.id, module_in=draft
            )
            self.series.modulos.append(ModuleTree(**saved.model_dump()))
            self.series.modulos_count += 1
        else:
            saved = await asyncio.to_thread(
                crud.update_module,
                store=self.store,
                series_id=self.series.id,
                module_id=module_id,
                module_in=draft,
            )
            module = self.module(module_id)
            module.titulo = saved.titulo
            module.descricao = saved.descricao
            module.data_atualizacao = saved.data_atualizacao

        self._machine.close()
        return saved

    def request_module_delete(self, module_id: str) -> DeleteConfirmation:
        module = self.module(module_id)
        self._machine.open(EditorMode.CONFIRMING_DELETE, module_id=module_id)
        return DeleteConfirmation(
            module_id=module.id,
            module_title=module.titulo,
            tattoo_count=module.tatuagens_count,
            warning=(
                f'Esta ação não pode ser desfeita. O módulo "{module.titulo}" e suas '
                f"{module.tatuagens_count} tatuagens serão excluídos permanentemente."
            ),
        )

    async def confirm_delete(self) -> ModulePublic:
        self._machine.require(EditorMode.CONFIRMING_DELETE)
        module_id = self.state.module_id
        deleted = await asyncio.to_thread(
            crud.delete_module, store=self.store, series_id=self.series.id, module_id=module_id
        )
        self.series.modulos = [m for m in self.series.modulos if m.id != module_id]
        self.series.modulos_count -= 1
        self.series.tatuagens_count -= deleted.tatuagens_count
        self._machine.close()
        return deleted

    # ---------- Tattoos ----------

    def open_tattoo_form(self, tattoo_id: str) -> TattooForm:
        module, tattoo = self.tattoo(tattoo_id)
        self._machine.open(EditorMode.EDITING_TATTOO, module_id=module.id, tattoo_id=tattoo_id)
        return TattooForm(**tattoo.model_dump(include=set(TattooForm.model_fields)))

    async def save_tattoo(self, changes: TattooUpdate | TattooForm) -> TattooPublic:
        """Merge the edited fields into the tattoo and write the full editable record."""
        self._machine.require(EditorMode.EDITING_TATTOO)
        patch = changes.model_dump(exclude_unset=True, exclude_none=True)
        if "titulo" in patch:
            patch["titulo"] = crud.require_title(patch["titulo"], message="O nome da tatuagem não pode ser vazio.")

        module, tattoo = self.tattoo(self.state.tattoo_id)
        merged = tattoo.model_copy(update=patch)
        record = merged.model_dump(include=set(TattooForm.model_fields), mode="json")
        batch = crud.tattoo_update_batch(
            store=self.store,
            series_id=self.series.id,
            module_id=module.id,
            tattoo_id=tattoo.id,
            changes=record,
        )
        self.writes.track(batch.commit_nowait())

        module.tatuagens = [merged if t.id == tattoo.id else t for t in module.tatuagens]
        self._machine.close()
        return merged

    async def delete_tattoo(self, tattoo_id: str) -> None:
        self._machine.require(EditorMode.VIEWING)
        module, tattoo = self.tattoo(tattoo_id)
        await asyncio.to_thread(
            crud.delete_tattoo,
            store=self.store,
            series_id=self.series.id,
            module_id=module.id,
            tattoo_id=tattoo.id,
        )
        module.tatuagens = [t for t in module.tatuagens if t.id != tattoo.id]
        module.tatuagens_count -= 1
        self.series.tatuagens_count -= 1

    # ---------- Series settings ----------

    async def update_settings(self, series_in: SeriesUpdate) -> SeriesTree:
        """Apply title/description/status/pricing changes locally, then write them in the background."""
        changes = crud.series_changes(series_in)
        self.series = self.series.model_copy(update=changes)
        self.writes.track(self.store.update_nowait(paths.series_path(self.series.id), changes))
        return self.series

    # ---------- Compilation ----------

    def compilation_modules(self) -> list[ModuleCompilationInput]:
        return [
            ModuleCompilationInput(
                name=module.titulo,
                sub_description=module.descricao,
                images=[tattoo.capa_url for tattoo in module.tatuagens if tattoo.capa_url],
            )
            for module in sorted(self.series.modulos, key=lambda m: m.ordem)
        ]

    async def compile(self) -> CompilationOutcome | None:
        """Compile the collection; returns None when the dialog was dismissed meanwhile."""
        self._machine.open(EditorMode.COMPILING)
        token = object()
        self._compile_token = token
        try:
            result = await self.gateway.compile_collection(
                name=self.series.titulo,
                description=self.series.descricao,
                target_audience=self.series.publico_alvo,
                modules=self.compilation_modules(),
            )
            outcome = CompilationOutcome(result=result)
        except (GenerationFailure, ValidationFailure) as exc:
            outcome = CompilationOutcome(error=str(exc))

        if self._compile_token is not token:
            logger.info("Discarding compilation of series %s: dialog was dismissed", self.series.id)
            return None
        self._compile_token = None
        self.last_compilation = outcome
        self._machine.close()
        return outcome

    def dismiss_compilation(self) -> None:
        self._machine.require(EditorMode.COMPILING)
        self._compile_token = None
        self._machine.close()

    # ---------- Write queue ----------

    @property
    def pending_writes(self) -> list[PendingWrite]:
        return self.writes.pending

    @property
    def failed_writes(self) -> list[PendingWrite]:
        return self.writes.failed

    async def flush_writes(self) -> list[PendingWrite]:
        """Wait for background writes to settle and return the ones that failed."""
        failed = await self.writes.flush()
        for write in failed:
            logger.warning("Write to %s was not persisted: %s", write.path, write.error)
        return failed
