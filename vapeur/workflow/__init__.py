"""Catalog workflow package."""

from .reconciler import CatalogCommitError
from .service import CatalogService

__all__ = [
    "CatalogCommitError",
    "CatalogService",
]
