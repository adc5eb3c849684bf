"""
Abstract interface for catalog data sources
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from catalog_export.catalog.records import CategoryRecord


class CatalogSourceError(Exception):
    """A data source could not produce a catalog snapshot."""
    pass


class CatalogSource(ABC):
    """Anything that can hand over a fully loaded category/product tree."""

    @abstractmethod
    def fetch_categories_with_products(self) -> List[CategoryRecord]:
        """
        Load every category with its products already populated.

        Returns:
            Categories in the order they should be exported

        Raises:
            CatalogSourceError: If the snapshot cannot be produced
        """
        pass


class InMemoryCatalogSource(CatalogSource):
    """Source backed by records that are already in memory."""

    def __init__(self, categories: Iterable[CategoryRecord]):
        self._categories = list(categories)

    def fetch_categories_with_products(self) -> List[CategoryRecord]:
        return list(self._categories)
