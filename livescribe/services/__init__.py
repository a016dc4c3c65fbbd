"""Services layer for LiveScribe application logic."""

from .session_controller import SessionController
from .history_manager import HistoryManager
from .autosave import EditableDocument
from .workspace import Workspace

__all__ = [
    "SessionController",
    "HistoryManager",
    "EditableDocument",
    "Workspace"
]
