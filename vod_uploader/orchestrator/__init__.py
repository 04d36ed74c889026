"""Orchestrator package - coordinates the upload workflow."""
from .core import VodUploader

__all__ = ["VodUploader"]
