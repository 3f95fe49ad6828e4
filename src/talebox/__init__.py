"""Talebox - resumable audiobook playback service."""

__version__ = "0.1.0"
