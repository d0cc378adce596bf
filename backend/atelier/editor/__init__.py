from atelier.editor.editor import (
    CollectionEditor,
    CompilationOutcome,
    DeleteConfirmation,
    UploadFailure,
    UploadReport,
)
from atelier.editor.state import EditorMode, EditorState, EditorStateMachine

__all__ = [
    "CollectionEditor",
    "CompilationOutcome",
    "DeleteConfirmation",
    "EditorMode",
    "EditorState",
    "EditorStateMachine",
    "UploadFailure",
    "UploadReport",
]
