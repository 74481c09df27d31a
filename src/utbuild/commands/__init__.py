"""Command implementations for utbuild."""

from .clean import clean_build_path

__all__ = ["clean_build_path"]
