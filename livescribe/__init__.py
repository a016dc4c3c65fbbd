"""LiveScribe - live speech-to-text with pause/resume and session history."""

__version__ = "0.1.0"
