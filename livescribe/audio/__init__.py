"""Microphone capture for LiveScribe.

Requires the optional ``audio`` extra (PyAudio).
"""
