"""Transcript assembly and publication for LiveScribe."""

from .assembler import TranscriptAssembler, merge_results
from .publisher import SessionPublisher

__all__ = [
    "TranscriptAssembler",
    "merge_results",
    "SessionPublisher",
]
