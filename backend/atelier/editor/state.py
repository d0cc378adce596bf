from dataclasses import dataclass
from enum import Enum

from atelier.errors import EditorStateError


class EditorMode(str, Enum):
    VIEWING = "viewing"
    UPLOADING = "uploading"
    COMPILING = "compiling"
    EDITING_MODULE = "editing_module"
    EDITING_TATTOO = "editing_tattoo"
    CONFIRMING_DELETE = "confirming_delete"


ALLOWED_TRANSITIONS: dict[EditorMode, set[EditorMode]] = {
    EditorMode.VIEWING: {
        EditorMode.UPLOADING,
        EditorMode.COMPILING,
        EditorMode.EDITING_MODULE,
        EditorMode.EDITING_TATTOO,
        EditorMode.CONFIRMING_DELETE,
    },
    EditorMode.UPLOADING: {EditorMode.UPLOADING, EditorMode.VIEWING},
    EditorMode.COMPILING: {EditorMode.VIEWING},
    EditorMode.EDITING_MODULE: {EditorMode.VIEWING},
    EditorMode.EDITING_TATTOO: {EditorMode.VIEWING},
    EditorMode.CONFIRMING_DELETE: {EditorMode.VIEWING},
}


@dataclass
class EditorState:
    mode: EditorMode = EditorMode.VIEWING
    pending_uploads: int = 0
    # Module being edited or deleted; None while creating a new module.
    module_id: str | None = None
    tattoo_id: str | None = None

    def __str__(self) -> str:
        if self.mode == EditorMode.UPLOADING:
            return f"uploading({self.pending_uploads} pending)"
        return self.mode.value


class EditorStateMachine:
    """Tracks what one open collection's editor is doing."""

    def __init__(self) -> None:
        self.state = EditorState()

    @property
    def mode(self) -> EditorMode:
        return self.state.mode

    def require(self, *modes: EditorMode) -> None:
        if self.state.mode not in modes:
            expected = ", ".join(mode.value for mode in modes)
            raise EditorStateError(f"Editor is {self.state}, expected one of: {expected}")

    def _move(self, mode: EditorMode) -> None:
        if mode not in ALLOWED_TRANSITIONS[self.state.mode]:
            raise EditorStateError(f"Cannot go from {self.state} to {mode.value}")
        self.state.mode = mode

    def open(self, mode: EditorMode, *, module_id: str | None = None, tattoo_id: str | None = None) -> None:
        if mode in (EditorMode.VIEWING, EditorMode.UPLOADING):
            raise EditorStateError(f"{mode.value} is not a dialog state")
        self._move(mode)
        self.state.module_id = module_id
        self.state.tattoo_id = tattoo_id

    def close(self) -> None:
        if self.state.mode == EditorMode.UPLOADING:
            raise EditorStateError("Uploads finish on their own; they cannot be closed")
        self._move(EditorMode.VIEWING)
        self.state.module_id = None
        self.state.tattoo_id = None

    def begin_uploads(self, count: int) -> None:
        self._move(EditorMode.UPLOADING)
        self.state.pending_uploads += count

    def finish_upload(self) -> None:
        self.require(EditorMode.UPLOADING)
        self.state.pending_uploads = max(0, self.state.pending_uploads - 1)
        if self.state.pending_uploads == 0:
            self._move(EditorMode.VIEWING)
