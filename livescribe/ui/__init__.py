"""Terminal user interface for LiveScribe."""
