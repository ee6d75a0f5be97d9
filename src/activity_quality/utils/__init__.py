"""Shared helpers for the pipeline (console logging)."""

from .logger import get_logger

__all__ = ["get_logger"]
