"""Recognition engine adapters for LiveScribe."""

from .base import AbstractRecognitionEngine
from .errors import (
    RecognitionErrorKind,
    RecognitionError,
    EngineUnsupportedError,
    classify_error,
)

__all__ = [
    "AbstractRecognitionEngine",
    "RecognitionErrorKind",
    "RecognitionError",
    "EngineUnsupportedError",
    "classify_error",
]
