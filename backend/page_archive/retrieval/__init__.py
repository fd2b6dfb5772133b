"""Retrieval components."""

from .search import SearchService

__all__ = ["SearchService"]
